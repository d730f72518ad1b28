"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from nextmove.modules.coupon.router import router as coupon_router
from nextmove.modules.notifications.router import router as notification_router
from nextmove.modules.payments.router import router as payment_router
from nextmove.modules.payments.router import webhook_router
from nextmove.modules.pod.router import router as pod_router
from nextmove.modules.pos.router import router as pos_router
from nextmove.modules.rfq.router import router as offer_router
from nextmove.modules.shipment.router import router as shipment_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(offer_router)
v1_router.include_router(shipment_router)
v1_router.include_router(pod_router)
v1_router.include_router(pos_router)
v1_router.include_router(coupon_router)
v1_router.include_router(notification_router)
v1_router.include_router(payment_router)
v1_router.include_router(webhook_router)
