"""Coupon router — admin/forwarder management and checkout-time validation."""

import uuid

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.coupon.schemas import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
)
from nextmove.modules.coupon.service import CouponService, compute_discount

router = APIRouter(prefix="/coupons", tags=["coupons"])
limiter = Limiter(key_func=get_remote_address)


def _require_manager(user: AuthenticatedUser) -> None:
    require_roles(user, ProfileRole.ADMIN, ProfileRole.FORWARDER)


@router.get("", response_model=list[CouponResponse])
async def list_coupons(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_manager(user)
    coupons = await CouponService(db).list_coupons(user)
    return [CouponResponse.model_validate(c) for c in coupons]


@router.post("", response_model=CouponResponse, status_code=201)
async def create_coupon(
    body: CouponCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_manager(user)
    coupon = await CouponService(db).create_coupon(user, body.model_dump())
    return CouponResponse.model_validate(coupon)


@router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: uuid.UUID,
    body: CouponUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_manager(user)
    coupon = await CouponService(db).update_coupon(
        coupon_id, user, body.model_dump(exclude_unset=True)
    )
    return CouponResponse.model_validate(coupon)


@router.delete("/{coupon_id}", status_code=204)
async def delete_coupon(
    coupon_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_manager(user)
    await CouponService(db).delete_coupon(coupon_id, user)


@router.post("/validate", response_model=CouponValidateResponse)
@limiter.limit("30/minute")
async def validate_coupon(
    request: Request,
    body: CouponValidateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Check a promo code and, when an amount is given, price the discount."""
    coupon = await CouponService(db).validate_coupon(
        body.code, body.context, forwarder_id=body.forwarder_id
    )
    discount = final_amount = None
    if body.amount is not None:
        discount = compute_discount(coupon, body.amount)
        final_amount = body.amount - discount
    return CouponValidateResponse(
        coupon=CouponResponse.model_validate(coupon),
        discount=discount,
        final_amount=final_amount,
    )
