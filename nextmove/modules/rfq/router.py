"""Offer endpoints: list offers on an RFQ, accept or reject one."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.rfq.offer_service import OfferService
from nextmove.modules.rfq.schemas import OfferAcceptResponse, OfferRejectRequest, OfferResponse

router = APIRouter(tags=["offers"])


@router.get("/rfqs/{rfq_id}/offers", response_model=list[OfferResponse])
async def list_offers(
    rfq_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = OfferService(db)
    offers = await svc.list_offers(rfq_id, user)
    return [OfferResponse.model_validate(o) for o in offers]


@router.post("/offers/{offer_id}/accept", response_model=OfferAcceptResponse)
async def accept_offer(
    offer_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Accept an offer: closes the RFQ, rejects the others and opens the shipment."""
    require_roles(user, ProfileRole.CLIENT, ProfileRole.ADMIN)
    svc = OfferService(db)
    offer, shipment = await svc.accept_offer(offer_id, user)
    return OfferAcceptResponse(
        offer=OfferResponse.model_validate(offer),
        shipment_id=shipment.id,
        tracking_number=shipment.tracking_number,
        shipment_status=shipment.status,
    )


@router.post("/offers/{offer_id}/reject", response_model=OfferResponse)
async def reject_offer(
    offer_id: uuid.UUID,
    body: OfferRejectRequest | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_roles(user, ProfileRole.CLIENT, ProfileRole.ADMIN)
    svc = OfferService(db)
    offer = await svc.reject_offer(offer_id, user, reason=body.reason if body else None)
    return OfferResponse.model_validate(offer)
