"""Row and user builders shared by the test modules."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.models.enums import (
    OfferStatus,
    ProfileRole,
    RfqStatus,
    ShipmentStatus,
    TransportMode,
)
from nextmove.models.profile import Profile
from nextmove.models.rfq import RfqRequest
from nextmove.models.rfq_offer import RfqOffer
from nextmove.models.shipment import Shipment
from nextmove.modules.auth.dependencies import AuthenticatedUser


def make_user(role: ProfileRole = ProfileRole.CLIENT, user_id: uuid.UUID | None = None) -> AuthenticatedUser:
    return AuthenticatedUser(id=user_id or uuid.uuid4(), email=f"{role.value}@example.com", role=role)


async def seed_profile(
    session: AsyncSession,
    role: ProfileRole = ProfileRole.CLIENT,
    **fields,
) -> Profile:
    fields.setdefault("email", f"{role.value}-{uuid.uuid4().hex[:6]}@example.com")
    profile = Profile(role=role, **fields)
    session.add(profile)
    await session.flush()
    return profile


async def seed_rfq(session: AsyncSession, client: Profile, **fields) -> RfqRequest:
    fields.setdefault("origin_port", "Shanghai")
    fields.setdefault("origin_country", "CN")
    fields.setdefault("destination_port", "Dakar")
    fields.setdefault("destination_country", "SN")
    fields.setdefault("cargo_type", "Electronics")
    fields.setdefault("weight_kg", Decimal("1200.00"))
    fields.setdefault("volume_cbm", Decimal("8.500"))
    fields.setdefault("quantity", 12)
    fields.setdefault("transport_mode", TransportMode.SEA)
    fields.setdefault("status", RfqStatus.OPEN)
    rfq = RfqRequest(client_id=client.id, **fields)
    session.add(rfq)
    await session.flush()
    return rfq


async def seed_offer(
    session: AsyncSession,
    rfq: RfqRequest,
    forwarder: Profile,
    **fields,
) -> RfqOffer:
    fields.setdefault("total_price", Decimal("1500.00"))
    fields.setdefault("currency", "XOF")
    fields.setdefault("status", OfferStatus.PENDING)
    offer = RfqOffer(rfq_id=rfq.id, forwarder_id=forwarder.id, **fields)
    session.add(offer)
    await session.flush()
    return offer


async def seed_shipment(
    session: AsyncSession,
    client: Profile,
    forwarder: Profile | None = None,
    **fields,
) -> Shipment:
    fields.setdefault("tracking_number", f"SHP-{uuid.uuid4().int % 1_000_000:06d}-1")
    fields.setdefault("status", ShipmentStatus.PENDING)
    fields.setdefault("origin_port", "Shanghai")
    fields.setdefault("destination_port", "Dakar")
    fields.setdefault("price", Decimal("1500.00"))
    fields.setdefault("departure_date", datetime(2026, 3, 1, tzinfo=UTC))
    shipment = Shipment(
        client_id=client.id,
        forwarder_id=forwarder.id if forwarder else None,
        **fields,
    )
    session.add(shipment)
    await session.flush()
    return shipment
