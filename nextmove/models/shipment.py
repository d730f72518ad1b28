"""Shipment model — the operational record created once an offer is accepted."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import PaymentStatus, ServiceType, ShipmentStatus, TransportMode

if TYPE_CHECKING:
    from nextmove.models.profile import Profile
    from nextmove.models.shipment_event import ShipmentEvent


class Shipment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "shipments"

    tracking_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    rfq_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rfq_requests.id", ondelete="SET NULL")
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    forwarder_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )

    status: Mapped[ShipmentStatus] = mapped_column(
        enum_column(ShipmentStatus), nullable=False, default=ShipmentStatus.PENDING
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID
    )

    # Route
    origin_port: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    origin_country: Mapped[str] = mapped_column(String(2), nullable=False, default="XX")
    destination_port: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    destination_country: Mapped[str] = mapped_column(String(2), nullable=False, default="XX")

    # Cargo snapshot, copied from the RFQ at creation time
    cargo_type: Mapped[str | None] = mapped_column(String(100))
    cargo_weight: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    cargo_volume: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=0)
    cargo_packages: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Service
    transport_mode: Mapped[TransportMode] = mapped_column(
        enum_column(TransportMode), nullable=False, default=TransportMode.SEA
    )
    service_type: Mapped[ServiceType] = mapped_column(
        enum_column(ServiceType), nullable=False, default=ServiceType.STANDARD
    )
    price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="XOF")

    # Dates
    departure_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    arrival_estimated_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    arrival_actual_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Carrier, copied from the forwarder profile at creation time
    carrier_name: Mapped[str | None] = mapped_column(String(200))
    carrier_logo: Mapped[str | None] = mapped_column(String(500))

    # Relationships
    client: Mapped[Profile] = relationship("Profile", foreign_keys=[client_id], lazy="noload")
    forwarder: Mapped[Profile | None] = relationship(
        "Profile", foreign_keys=[forwarder_id], lazy="noload"
    )
    events: Mapped[list[ShipmentEvent]] = relationship(
        "ShipmentEvent", back_populates="shipment", lazy="noload", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_shipments_client_id", "client_id"),
        Index("ix_shipments_forwarder_id", "forwarder_id"),
        Index("ix_shipments_rfq_id", "rfq_id"),
        Index("ix_shipments_status", "status"),
    )
