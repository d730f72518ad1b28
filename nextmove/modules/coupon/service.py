"""Coupon service — CRUD, validation against a purchase context, discount maths."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from nextmove.models.coupon import Coupon
from nextmove.models.enums import CouponContext, CouponScope, DiscountType, ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")

# Columns that cannot be cleared through an update
_NON_NULLABLE_FIELDS = frozenset({"discount_type", "discount_value", "is_active"})


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def compute_discount(coupon: Coupon, amount: Decimal) -> Decimal:
    """Discount granted by ``coupon`` on an order of ``amount``.

    Percentage discounts are capped by ``max_discount_amount``; no discount
    ever exceeds the order amount.
    """
    amount = Decimal(amount)
    if coupon.min_order_amount is not None and amount < coupon.min_order_amount:
        raise BusinessRuleException(
            f"This code requires a minimum order of {coupon.min_order_amount}"
        )

    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = amount * Decimal(coupon.discount_value) / Decimal(100)
        if coupon.max_discount_amount is not None:
            discount = min(discount, Decimal(coupon.max_discount_amount))
    else:
        discount = Decimal(coupon.discount_value)

    return min(discount, amount).quantize(_CENT, rounding=ROUND_HALF_UP)


class CouponService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_coupon(self, coupon_id: uuid.UUID) -> Coupon:
        result = await self.db.execute(select(Coupon).where(Coupon.id == coupon_id))
        coupon = result.scalar_one_or_none()
        if coupon is None:
            raise NotFoundException(f"Coupon {coupon_id} not found")
        return coupon

    @staticmethod
    def _check_can_manage(coupon: Coupon, user: AuthenticatedUser) -> None:
        if user.is_admin:
            return
        if coupon.scope == CouponScope.FORWARDER and coupon.created_by == user.id:
            return
        raise ForbiddenException("You can only manage your own coupons")

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def list_coupons(self, user: AuthenticatedUser) -> list[Coupon]:
        """Every coupon for admins; forwarders get their own forwarder-scoped ones."""
        query = select(Coupon).order_by(Coupon.created_at.desc())
        if user.role == ProfileRole.FORWARDER:
            query = query.where(
                Coupon.created_by == user.id, Coupon.scope == CouponScope.FORWARDER
            )
        elif not user.is_admin:
            raise ForbiddenException("Only admins and forwarders can list coupons")
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Create / Update / Delete
    # ------------------------------------------------------------------

    async def create_coupon(self, user: AuthenticatedUser, data: dict) -> Coupon:
        code = data.pop("code").strip().upper()
        existing = await self.db.execute(select(func.count(Coupon.id)).where(Coupon.code == code))
        if existing.scalar_one() > 0:
            raise ConflictException(f"Coupon code {code} already exists")

        # Forwarders can only issue coupons for their own services
        scope = data.pop("scope", None) or CouponScope.PLATFORM
        if user.role == ProfileRole.FORWARDER:
            scope = CouponScope.FORWARDER
        elif not user.is_admin:
            raise ForbiddenException("Only admins and forwarders can create coupons")

        if data.get("discount_type") == DiscountType.PERCENTAGE and data["discount_value"] > 100:
            raise BusinessRuleException("A percentage discount cannot exceed 100")

        coupon = Coupon(code=code, scope=scope, created_by=user.id, usage_count=0, **data)
        self.db.add(coupon)
        await self.db.flush()
        logger.info("Coupon %s (%s) created by %s", coupon.code, scope.value, user.id)
        return coupon

    async def update_coupon(
        self, coupon_id: uuid.UUID, user: AuthenticatedUser, changes: dict
    ) -> Coupon:
        coupon = await self._get_coupon(coupon_id)
        self._check_can_manage(coupon, user)

        for field, value in changes.items():
            if value is None and field in _NON_NULLABLE_FIELDS:
                continue
            setattr(coupon, field, value)
        if coupon.discount_type == DiscountType.PERCENTAGE and coupon.discount_value > 100:
            raise BusinessRuleException("A percentage discount cannot exceed 100")

        await self.db.flush()
        return coupon

    async def delete_coupon(self, coupon_id: uuid.UUID, user: AuthenticatedUser) -> None:
        coupon = await self._get_coupon(coupon_id)
        self._check_can_manage(coupon, user)
        await self.db.delete(coupon)
        await self.db.flush()
        logger.info("Coupon %s deleted by %s", coupon.code, user.id)

    # ------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------

    async def validate_coupon(
        self,
        code: str,
        context: CouponContext,
        forwarder_id: uuid.UUID | None = None,
        now: datetime | None = None,
    ) -> Coupon:
        """Return the coupon if ``code`` can be used in ``context``.

        Subscriptions take platform coupons only. Services take forwarder
        coupons issued by the forwarder providing the service.
        """
        result = await self.db.execute(select(Coupon).where(Coupon.code == code.strip().upper()))
        coupon = result.scalar_one_or_none()
        if coupon is None:
            raise NotFoundException("Invalid promo code")

        now = now or datetime.now(UTC)
        if not coupon.is_active:
            raise BusinessRuleException("This promo code is no longer active")
        if coupon.end_date is not None and _as_utc(coupon.end_date) < now:
            raise BusinessRuleException("This promo code has expired")
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            raise BusinessRuleException("This promo code has reached its usage limit")

        if context == CouponContext.SUBSCRIPTION:
            if coupon.scope != CouponScope.PLATFORM:
                raise BusinessRuleException("This code cannot be used for a subscription")
        else:
            if coupon.scope != CouponScope.FORWARDER:
                raise BusinessRuleException("This code is not valid for this service")
            if forwarder_id is None:
                raise BusinessRuleException("Missing forwarder context")
            if coupon.created_by != forwarder_id:
                raise BusinessRuleException("This code is not valid for this forwarder")

        return coupon

    async def record_redemption(self, code: str) -> None:
        """Count one more use of ``code``. The increment happens in SQL."""
        await self.db.execute(
            update(Coupon)
            .where(Coupon.code == code)
            .values(usage_count=Coupon.usage_count + 1)
        )
        logger.info("Coupon %s redeemed", code)
