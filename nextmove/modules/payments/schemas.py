from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import PaymentProvider, TransactionStatus


class CheckoutCreate(BaseModel):
    amount: Decimal | None = Field(None, gt=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    shipment_id: uuid.UUID | None = None
    description: str | None = Field(None, max_length=255)
    success_url: str | None = Field(None, max_length=500)
    cancel_url: str | None = Field(None, max_length=500)
    coupon_code: str | None = Field(None, max_length=50)


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    reference: str
    amount: Decimal
    currency: str
    provider: PaymentProvider | None = None
    status: TransactionStatus
    shipment_id: uuid.UUID | None = None
    created_at: datetime


class CheckoutResponse(BaseModel):
    transaction: TransactionResponse
    payment_url: str | None = None
    checkout: dict


class WebhookAck(BaseModel):
    received: bool = True
    reference: str | None = None
    status: TransactionStatus | None = None
