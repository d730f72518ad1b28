"""Pydantic v2 schemas for shipment endpoints.

``ShipmentView`` is the nested shape the dashboards consume; build it with
``ShipmentView.from_record`` rather than ``model_validate``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import PaymentStatus, ServiceType, ShipmentStatus, TransportMode
from nextmove.models.shipment import Shipment
from nextmove.modules.shipment.constants import (
    DEFAULT_CARGO_TYPE,
    DEFAULT_CARRIER_LABEL,
    progress_for,
)

# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------


class PortView(BaseModel):
    port: str
    country: str


class CarrierView(BaseModel):
    name: str
    logo: str | None = None


class CargoView(BaseModel):
    type: str
    weight: Decimal
    volume: Decimal
    packages: int


class DatesView(BaseModel):
    departure: datetime | None = None
    arrival_estimated: datetime | None = None
    arrival_actual: datetime | None = None


class ClientView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None


class ShipmentEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: ShipmentStatus
    location: str | None = None
    description: str | None = None
    timestamp: datetime


class ShipmentView(BaseModel):
    id: uuid.UUID
    tracking_number: str
    rfq_id: uuid.UUID | None = None
    transport_mode: TransportMode
    service_type: ServiceType
    price: Decimal
    currency: str
    origin: PortView
    destination: PortView
    status: ShipmentStatus
    payment_status: PaymentStatus
    carrier: CarrierView
    cargo: CargoView
    dates: DatesView
    progress: int
    events: list[ShipmentEventResponse] = []
    client: ClientView | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, shipment: Shipment) -> ShipmentView:
        """Map a shipment row to the dashboard view, filling the usual defaults.

        Relationships that were not eager-loaded come through as empty.
        """
        forwarder = shipment.forwarder
        events = sorted(shipment.events or [], key=lambda e: e.timestamp, reverse=True)
        return cls(
            id=shipment.id,
            tracking_number=shipment.tracking_number,
            rfq_id=shipment.rfq_id,
            transport_mode=shipment.transport_mode or TransportMode.SEA,
            service_type=shipment.service_type or ServiceType.STANDARD,
            price=shipment.price or 0,
            currency=shipment.currency,
            origin=PortView(port=shipment.origin_port, country=shipment.origin_country or "XX"),
            destination=PortView(
                port=shipment.destination_port, country=shipment.destination_country or "XX"
            ),
            status=shipment.status,
            payment_status=shipment.payment_status,
            carrier=CarrierView(
                name=shipment.carrier_name
                or (forwarder.company_name if forwarder else None)
                or DEFAULT_CARRIER_LABEL,
                logo=shipment.carrier_logo,
            ),
            cargo=CargoView(
                type=shipment.cargo_type or DEFAULT_CARGO_TYPE,
                weight=shipment.cargo_weight or 0,
                volume=shipment.cargo_volume or 0,
                packages=shipment.cargo_packages or 0,
            ),
            dates=DatesView(
                departure=shipment.departure_date,
                arrival_estimated=shipment.arrival_estimated_date,
                arrival_actual=shipment.arrival_actual_date,
            ),
            progress=progress_for(shipment.status),
            events=[ShipmentEventResponse.model_validate(e) for e in events],
            client=ClientView.model_validate(shipment.client) if shipment.client else None,
            created_at=shipment.created_at,
        )


class ShipmentListResponse(BaseModel):
    items: list[ShipmentView]
    total: int
    limit: int
    offset: int


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ShipmentUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    status: ShipmentStatus | None = None
    transport_mode: TransportMode | None = None
    service_type: ServiceType | None = None
    carrier_name: str | None = Field(None, min_length=1, max_length=200)
    price: Decimal | None = Field(None, ge=0)
    cargo_type: str | None = Field(None, max_length=100)
    cargo_weight: Decimal | None = Field(None, ge=0)
    cargo_volume: Decimal | None = Field(None, ge=0)
    cargo_packages: int | None = Field(None, ge=0)
    departure_date: datetime | None = None
    arrival_estimated_date: datetime | None = None
    arrival_actual_date: datetime | None = None
    origin_port: str | None = Field(None, min_length=1, max_length=100)
    destination_port: str | None = Field(None, min_length=1, max_length=100)


class PodSubmitRequest(BaseModel):
    recipient_name: str = Field(..., min_length=1, max_length=200)
    photo_urls: list[str] = Field(default_factory=list)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    notes: str | None = Field(None, max_length=2000)


class AssignDriverRequest(BaseModel):
    driver_id: uuid.UUID
