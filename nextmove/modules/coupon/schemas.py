from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import CouponContext, CouponScope, DiscountType


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    description: str | None = Field(None, max_length=500)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    usage_limit: int | None = Field(None, ge=1)
    min_order_amount: Decimal | None = Field(None, ge=0)
    max_discount_amount: Decimal | None = Field(None, gt=0)
    is_active: bool = True
    end_date: datetime | None = None
    scope: CouponScope | None = None


class CouponUpdate(BaseModel):
    description: str | None = Field(None, max_length=500)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, gt=0)
    usage_limit: int | None = Field(None, ge=1)
    min_order_amount: Decimal | None = Field(None, ge=0)
    max_discount_amount: Decimal | None = Field(None, gt=0)
    is_active: bool | None = None
    end_date: datetime | None = None


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal
    usage_count: int
    usage_limit: int | None = None
    min_order_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    is_active: bool
    end_date: datetime | None = None
    created_by: uuid.UUID | None = None
    scope: CouponScope
    created_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    context: CouponContext
    forwarder_id: uuid.UUID | None = None
    amount: Decimal | None = Field(None, ge=0)


class CouponValidateResponse(BaseModel):
    coupon: CouponResponse
    discount: Decimal | None = None
    final_amount: Decimal | None = None
