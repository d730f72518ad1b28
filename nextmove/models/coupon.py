from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import CouponScope, DiscountType


class Coupon(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "coupons"

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500))
    discount_type: Mapped[DiscountType] = mapped_column(enum_column(DiscountType), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    usage_limit: Mapped[int | None] = mapped_column(Integer)
    min_order_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2))
    max_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    scope: Mapped[CouponScope] = mapped_column(
        enum_column(CouponScope), nullable=False, default=CouponScope.PLATFORM
    )

    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="ck_coupons_discount_value_non_negative"),
        Index("ix_coupons_created_by", "created_by"),
    )
