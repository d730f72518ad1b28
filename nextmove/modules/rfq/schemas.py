"""Pydantic v2 schemas for offer endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import OfferStatus, ShipmentStatus


class ForwarderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_name: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None


class OfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rfq_id: uuid.UUID
    forwarder_id: uuid.UUID
    total_price: Decimal
    currency: str
    departure_date: datetime | None = None
    estimated_transit_days: int | None = None
    status: OfferStatus
    rejected_reason: str | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    created_at: datetime
    forwarder: ForwarderSummary | None = None


class OfferRejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class OfferAcceptResponse(BaseModel):
    offer: OfferResponse
    shipment_id: uuid.UUID
    tracking_number: str
    shipment_status: ShipmentStatus
