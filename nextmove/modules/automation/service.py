"""Automation workflows: offer acceptance, delivery feedback, stale RFQ reminders.

``handle_offer_acceptance`` runs inside the caller's transaction. Every write
it makes (RFQ status, sibling rejections, shipment, queued emails) commits or
rolls back together with the caller's own changes.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from nextmove.config import settings
from nextmove.database.retry import fetch_with_retry
from nextmove.exceptions import AppException, BusinessRuleException, NotFoundException
from nextmove.models.enums import (
    NotificationType,
    OfferStatus,
    PaymentStatus,
    RfqStatus,
    ShipmentStatus,
)
from nextmove.models.notification import Notification
from nextmove.models.profile import Profile
from nextmove.models.rfq import RfqRequest
from nextmove.models.rfq_offer import RfqOffer
from nextmove.models.shipment import Shipment
from nextmove.modules.automation.constants import (
    CLIENT_ACCEPTANCE_BODY,
    CLIENT_ACCEPTANCE_SUBJECT,
    CLIENT_RFQ_LINK,
    CLIENT_SHIPMENT_LINK,
    DEFAULT_CARRIER_NAME,
    DEFAULT_COUNTRY_CODE,
    DEFAULT_PACKAGE_COUNT,
    FEEDBACK_BODY,
    FEEDBACK_MESSAGE,
    FEEDBACK_SETTING_KEY,
    FEEDBACK_SUBJECT,
    FEEDBACK_TITLE,
    FORWARDER_CONTRACT_BODY,
    FORWARDER_CONTRACT_SUBJECT,
    SIBLING_REJECTION_REASON,
    STALE_RFQ_MESSAGE,
    STALE_RFQ_TITLE,
)
from nextmove.modules.automation.results import AutomationResult
from nextmove.modules.automation.tracking import generate_tracking_number
from nextmove.modules.notifications.email import EmailService
from nextmove.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)


def compute_schedule(
    departure_date: datetime | None,
    transit_days: int | None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Return ``(departure, estimated_arrival)`` for a new shipment.

    Without a departure date the shipment leaves after the preparation
    buffer. Missing transit days fall back to the default; negative values
    count as zero so arrival is never before departure.
    """
    if departure_date is None:
        now = now or datetime.now(UTC)
        departure_date = now + timedelta(days=settings.automation_prep_buffer_days)
    days = transit_days if transit_days is not None else settings.automation_default_transit_days
    return departure_date, departure_date + timedelta(days=max(days, 0))


class AutomationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _load_offer(self, offer_id: uuid.UUID) -> RfqOffer | None:
        result = await self.db.execute(
            select(RfqOffer)
            .options(joinedload(RfqOffer.forwarder))
            .where(RfqOffer.id == offer_id)
            .execution_options(populate_existing=True)
        )
        return result.unique().scalar_one_or_none()

    async def _lock_rfq(self, rfq_id: uuid.UUID) -> RfqRequest | None:
        result = await self.db.execute(
            select(RfqRequest).where(RfqRequest.id == rfq_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def _shipment_for_rfq(self, rfq_id: uuid.UUID) -> Shipment | None:
        result = await self.db.execute(
            select(Shipment).where(Shipment.rfq_id == rfq_id).limit(1)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Offer acceptance
    # ------------------------------------------------------------------

    async def handle_offer_acceptance(
        self, accepted_offer_id: uuid.UUID, rfq_id: uuid.UUID
    ) -> AutomationResult[Shipment]:
        """Close the RFQ, reject competing offers and open the shipment.

        Returns a failed result, with nothing written, when the offer is
        missing or belongs to another RFQ. Running it again for an RFQ that
        already has a shipment returns that shipment unchanged. Database
        errors propagate so the caller's transaction rolls back.
        """
        offer = await fetch_with_retry(lambda: self._load_offer(accepted_offer_id), session=self.db)
        if offer is None:
            logger.error("Offer acceptance skipped: offer %s not found", accepted_offer_id)
            return AutomationResult.failed(NotFoundException(f"Offer {accepted_offer_id} not found"))

        if offer.rfq_id != rfq_id:
            logger.error(
                "Offer acceptance skipped: offer %s belongs to RFQ %s, not %s",
                accepted_offer_id, offer.rfq_id, rfq_id,
            )
            return AutomationResult.failed(
                BusinessRuleException(f"Offer {accepted_offer_id} does not belong to RFQ {rfq_id}")
            )

        rfq = await fetch_with_retry(lambda: self._lock_rfq(rfq_id), session=self.db)
        if rfq is None:
            logger.error("Offer acceptance skipped: RFQ %s not found", rfq_id)
            return AutomationResult.failed(NotFoundException(f"RFQ {rfq_id} not found"))

        existing = await self._shipment_for_rfq(rfq_id)
        if existing is not None:
            logger.info(
                "RFQ %s already has shipment %s, nothing to do", rfq_id, existing.tracking_number
            )
            return AutomationResult.already_done(existing)

        now = datetime.now(UTC)

        # 1. Close the RFQ
        rfq.status = RfqStatus.OFFER_ACCEPTED

        # 2. Reject competing offers still pending
        rejected = await self.db.execute(
            update(RfqOffer)
            .where(
                RfqOffer.rfq_id == rfq_id,
                RfqOffer.id != accepted_offer_id,
                RfqOffer.status == OfferStatus.PENDING,
            )
            .values(
                status=OfferStatus.REJECTED,
                rejected_reason=SIBLING_REJECTION_REASON,
                rejected_at=now,
            )
        )

        # 3. Open the shipment
        shipment = self._build_shipment(rfq, offer, now)
        self.db.add(shipment)
        await self.db.flush()

        # 4. Queue the confirmation emails
        await self._queue_acceptance_emails(rfq, offer, shipment)

        logger.info(
            "RFQ %s closed, %d competing offers rejected, shipment %s created",
            rfq_id, rejected.rowcount, shipment.tracking_number,
        )
        return AutomationResult.completed(shipment)

    def _build_shipment(self, rfq: RfqRequest, offer: RfqOffer, now: datetime) -> Shipment:
        departure, arrival = compute_schedule(
            offer.departure_date, offer.estimated_transit_days, now=now
        )
        forwarder: Profile | None = offer.forwarder
        return Shipment(
            tracking_number=generate_tracking_number(),
            rfq_id=rfq.id,
            client_id=rfq.client_id,
            forwarder_id=offer.forwarder_id,
            status=ShipmentStatus.PENDING_PAYMENT,
            payment_status=PaymentStatus.UNPAID,
            origin_port=rfq.origin_port,
            origin_country=rfq.origin_country or DEFAULT_COUNTRY_CODE,
            destination_port=rfq.destination_port,
            destination_country=rfq.destination_country or DEFAULT_COUNTRY_CODE,
            cargo_type=rfq.cargo_type,
            cargo_weight=rfq.weight_kg or 0,
            cargo_volume=rfq.volume_cbm or 0,
            cargo_packages=rfq.quantity or DEFAULT_PACKAGE_COUNT,
            transport_mode=rfq.transport_mode,
            service_type=rfq.service_type,
            price=offer.total_price,
            currency=offer.currency,
            departure_date=departure,
            arrival_estimated_date=arrival,
            carrier_name=(forwarder.company_name if forwarder else None) or DEFAULT_CARRIER_NAME,
            carrier_logo=forwarder.avatar_url if forwarder else None,
        )

    async def _queue_acceptance_emails(
        self, rfq: RfqRequest, offer: RfqOffer, shipment: Shipment
    ) -> None:
        emails = EmailService(self.db)
        short_id = str(rfq.id)[:8]
        await emails.queue_email(
            subject=CLIENT_ACCEPTANCE_SUBJECT.format(short_id=short_id),
            body=CLIENT_ACCEPTANCE_BODY.format(
                carrier=shipment.carrier_name,
                tracking_number=shipment.tracking_number,
                amount=offer.total_price,
                currency=offer.currency,
                departure=shipment.departure_date.strftime("%d/%m/%Y"),
            ),
            recipients=[str(rfq.client_id)],
        )
        await emails.queue_email(
            subject=FORWARDER_CONTRACT_SUBJECT.format(short_id=short_id),
            body=FORWARDER_CONTRACT_BODY.format(tracking_number=shipment.tracking_number),
            recipients=[str(offer.forwarder_id)],
        )

    # ------------------------------------------------------------------
    # Delivery feedback
    # ------------------------------------------------------------------

    async def handle_shipment_delivery(
        self, shipment_id: uuid.UUID, client_id: uuid.UUID
    ) -> AutomationResult[Notification]:
        """Ask the client for feedback unless the forwarder opted out.

        Never raises: failures come back as a failed result.
        """
        try:
            return await self._send_delivery_feedback(shipment_id, client_id)
        except AppException as exc:
            logger.error("Delivery feedback for shipment %s failed: %s", shipment_id, exc.message)
            return AutomationResult.failed(exc)
        except Exception as exc:
            logger.exception("Delivery feedback for shipment %s failed", shipment_id)
            return AutomationResult.failed(AppException(str(exc)))

    async def _send_delivery_feedback(
        self, shipment_id: uuid.UUID, client_id: uuid.UUID
    ) -> AutomationResult[Notification]:
        async def _load_shipment() -> Shipment | None:
            result = await self.db.execute(select(Shipment).where(Shipment.id == shipment_id))
            return result.scalar_one_or_none()

        shipment = await fetch_with_retry(_load_shipment, session=self.db)

        if shipment is not None and shipment.forwarder_id is not None:
            forwarder = await self.db.get(Profile, shipment.forwarder_id)
            flags = (forwarder.automation_settings if forwarder else None) or {}
            if flags.get(FEEDBACK_SETTING_KEY) is False:
                logger.info(
                    "Feedback request skipped for forwarder %s (disabled by user)",
                    shipment.forwarder_id,
                )
                return AutomationResult.suppressed()

        link = CLIENT_SHIPMENT_LINK.format(shipment_id=shipment_id)
        notification = await NotificationService(self.db).create_notification(
            user_id=client_id,
            type=NotificationType.FEEDBACK_REQUEST,
            title=FEEDBACK_TITLE,
            message=FEEDBACK_MESSAGE,
            link=link,
        )

        tracking = shipment.tracking_number if shipment is not None else "Shipment"
        await EmailService(self.db).queue_email(
            subject=FEEDBACK_SUBJECT.format(tracking_number=tracking),
            body=FEEDBACK_BODY.format(link=f"{settings.app_base_url}{link}"),
            recipients=[str(client_id)],
        )

        logger.info("Shipment %s delivered, feedback request queued", shipment_id)
        return AutomationResult.completed(notification)

    # ------------------------------------------------------------------
    # Stale RFQs
    # ------------------------------------------------------------------

    async def check_stale_rfqs(self, now: datetime | None = None) -> dict:
        """Remind clients whose open RFQs have drawn no offers.

        Each RFQ is reminded at most once.
        """
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(hours=settings.automation_stale_rfq_hours)
        stats = {"checked": 0, "notified": 0}

        offer_count = (
            select(func.count(RfqOffer.id))
            .where(RfqOffer.rfq_id == RfqRequest.id)
            .correlate(RfqRequest)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(RfqRequest).where(
                RfqRequest.status == RfqStatus.OPEN,
                RfqRequest.created_at < cutoff,
                offer_count == 0,
            )
        )
        stale = list(result.scalars().all())

        notifications = NotificationService(self.db)
        for rfq in stale:
            stats["checked"] += 1
            link = CLIENT_RFQ_LINK.format(rfq_id=rfq.id)
            already = await self.db.execute(
                select(func.count(Notification.id)).where(
                    Notification.user_id == rfq.client_id,
                    Notification.type == NotificationType.RFQ_STALE,
                    Notification.link == link,
                )
            )
            if already.scalar_one() > 0:
                continue
            await notifications.create_notification(
                user_id=rfq.client_id,
                type=NotificationType.RFQ_STALE,
                title=STALE_RFQ_TITLE,
                message=STALE_RFQ_MESSAGE.format(short_id=str(rfq.id)[:8]),
                link=link,
            )
            stats["notified"] += 1

        logger.info("Stale RFQ check: %s", stats)
        return stats
