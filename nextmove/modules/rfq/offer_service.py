"""Offer service — listing, acceptance and rejection of forwarder offers."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import OfferStatus, ProfileRole, RfqStatus
from nextmove.models.rfq import RfqRequest
from nextmove.models.rfq_offer import RfqOffer
from nextmove.models.shipment import Shipment
from nextmove.modules.auth.dependencies import AuthenticatedUser
from nextmove.modules.automation.service import AutomationService

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_offer(self, offer_id: uuid.UUID) -> RfqOffer:
        result = await self.db.execute(select(RfqOffer).where(RfqOffer.id == offer_id))
        offer = result.scalar_one_or_none()
        if offer is None:
            raise NotFoundException(f"Offer {offer_id} not found")
        return offer

    async def _get_rfq(self, rfq_id: uuid.UUID, for_update: bool = False) -> RfqRequest:
        query = select(RfqRequest).where(RfqRequest.id == rfq_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        rfq = result.scalar_one_or_none()
        if rfq is None:
            raise NotFoundException(f"RFQ {rfq_id} not found")
        return rfq

    @staticmethod
    def _check_rfq_owner(rfq: RfqRequest, user: AuthenticatedUser) -> None:
        if user.is_admin:
            return
        if rfq.client_id != user.id:
            raise ForbiddenException("Only the client who posted the RFQ can decide on its offers")

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    async def list_offers(self, rfq_id: uuid.UUID, user: AuthenticatedUser) -> list[RfqOffer]:
        """Offers on an RFQ. Forwarders only see their own."""
        rfq = await self._get_rfq(rfq_id)

        query = (
            select(RfqOffer)
            .options(joinedload(RfqOffer.forwarder))
            .where(RfqOffer.rfq_id == rfq_id)
            .order_by(RfqOffer.created_at.desc())
        )
        if user.role == ProfileRole.FORWARDER:
            query = query.where(RfqOffer.forwarder_id == user.id)
        else:
            self._check_rfq_owner(rfq, user)

        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Accept
    # ------------------------------------------------------------------

    async def accept_offer(
        self, offer_id: uuid.UUID, user: AuthenticatedUser
    ) -> tuple[RfqOffer, Shipment]:
        """Accept an offer and open the shipment in the same transaction.

        The RFQ row is locked first, so two concurrent acceptances on the
        same RFQ serialise and the second sees a non-open RFQ.
        """
        offer = await self._get_offer(offer_id)
        rfq = await self._get_rfq(offer.rfq_id, for_update=True)
        self._check_rfq_owner(rfq, user)

        if rfq.status != RfqStatus.OPEN:
            raise BusinessRuleException(
                f"RFQ {rfq.id} is '{rfq.status.value}' and no longer accepts decisions"
            )
        if offer.status != OfferStatus.PENDING:
            raise BusinessRuleException(
                f"Only pending offers can be accepted (offer is '{offer.status.value}')"
            )

        offer.status = OfferStatus.ACCEPTED
        offer.accepted_at = datetime.now(UTC)
        await self.db.flush()

        result = await AutomationService(self.db).handle_offer_acceptance(offer.id, rfq.id)
        if not result.ok:
            raise result.error

        logger.info("Offer %s accepted by %s, shipment %s", offer.id, user.id, result.value.id)
        return offer, result.value

    # ------------------------------------------------------------------
    # Reject
    # ------------------------------------------------------------------

    async def reject_offer(
        self, offer_id: uuid.UUID, user: AuthenticatedUser, reason: str | None = None
    ) -> RfqOffer:
        offer = await self._get_offer(offer_id)
        rfq = await self._get_rfq(offer.rfq_id)
        self._check_rfq_owner(rfq, user)

        if offer.status != OfferStatus.PENDING:
            raise BusinessRuleException(
                f"Only pending offers can be rejected (offer is '{offer.status.value}')"
            )

        offer.status = OfferStatus.REJECTED
        offer.rejected_reason = reason
        offer.rejected_at = datetime.now(UTC)
        await self.db.flush()

        logger.info("Offer %s rejected by %s", offer.id, user.id)
        return offer
