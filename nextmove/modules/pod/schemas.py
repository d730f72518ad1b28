"""Pydantic v2 schemas for proof-of-delivery endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from nextmove.models.enums import PodStatus
from nextmove.models.pod import Pod
from nextmove.modules.pod.constants import UNKNOWN_PARTY_NAME


class PodDocument(BaseModel):
    url: str
    name: str
    type: str


class PodParty(BaseModel):
    id: uuid.UUID | None = None
    name: str = UNKNOWN_PARTY_NAME


class PodResponse(BaseModel):
    id: uuid.UUID
    shipment_id: uuid.UUID
    tracking_number: str | None = None
    status: PodStatus
    submitted_at: datetime
    verified_at: datetime | None = None
    recipient_name: str | None = None
    forwarder: PodParty
    client: PodParty
    documents: list[PodDocument] = []
    notes: str | None = None

    @classmethod
    def from_record(cls, pod: Pod) -> PodResponse:
        shipment = pod.shipment
        forwarder = shipment.forwarder if shipment is not None else None
        client = shipment.client if shipment is not None else None
        return cls(
            id=pod.id,
            shipment_id=pod.shipment_id,
            tracking_number=pod.tracking_number or (shipment.tracking_number if shipment else None),
            status=pod.status,
            submitted_at=pod.submitted_at,
            verified_at=pod.verified_at,
            recipient_name=pod.recipient_name,
            forwarder=PodParty(
                id=forwarder.id if forwarder else None,
                name=(forwarder.company_name if forwarder else None) or UNKNOWN_PARTY_NAME,
            ),
            client=PodParty(
                id=client.id if client else None,
                name=(client.display_name if client else None) or UNKNOWN_PARTY_NAME,
            ),
            documents=[PodDocument(**d) for d in pod.documents or []],
            notes=pod.notes,
        )


class PodReviewRequest(BaseModel):
    status: PodStatus
    notes: str = Field(..., min_length=1, max_length=2000)

    @field_validator("status")
    @classmethod
    def _must_be_decision(cls, value: PodStatus) -> PodStatus:
        if value == PodStatus.PENDING:
            raise ValueError("status must be 'verified' or 'rejected'")
        return value
