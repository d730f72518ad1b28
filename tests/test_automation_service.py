"""Tests for AutomationService — offer acceptance, delivery feedback, stale RFQs."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.email_queue import EmailQueue
from nextmove.models.enums import (
    NotificationType,
    OfferStatus,
    PaymentStatus,
    ProfileRole,
    RfqStatus,
    ShipmentStatus,
)
from nextmove.models.notification import Notification
from nextmove.models.rfq_offer import RfqOffer
from nextmove.models.shipment import Shipment
from nextmove.modules.automation.constants import SIBLING_REJECTION_REASON
from nextmove.modules.automation.results import AutomationOutcome
from nextmove.modules.automation.service import AutomationService, compute_schedule
from nextmove.modules.automation.tracking import TRACKING_PATTERN
from nextmove.modules.rfq.offer_service import OfferService
from tests.factories import (
    make_user,
    seed_offer,
    seed_profile,
    seed_rfq,
    seed_shipment,
)


async def _count(session, model, *where) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*where))
    return result.scalar_one()


async def _marketplace(session):
    client = await seed_profile(session, ProfileRole.CLIENT, full_name="Awa Ndiaye")
    forwarder_a = await seed_profile(
        session, ProfileRole.FORWARDER, company_name="Dakar Freight", avatar_url="https://cdn/x.png"
    )
    forwarder_b = await seed_profile(session, ProfileRole.FORWARDER, company_name="Sahel Lines")
    rfq = await seed_rfq(session, client)
    return client, forwarder_a, forwarder_b, rfq


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


class TestComputeSchedule:
    def test_explicit_departure_plus_transit_days(self):
        departure = datetime(2026, 5, 1, tzinfo=UTC)
        dep, arrival = compute_schedule(departure, 12)
        assert dep == departure
        assert arrival == departure + timedelta(days=12)

    def test_missing_departure_uses_prep_buffer(self):
        now = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)
        dep, arrival = compute_schedule(None, 10, now=now)
        assert dep == now + timedelta(days=3)
        assert arrival == dep + timedelta(days=10)

    def test_missing_transit_days_defaults_to_thirty(self):
        departure = datetime(2026, 5, 1, tzinfo=UTC)
        _, arrival = compute_schedule(departure, None)
        assert arrival == departure + timedelta(days=30)

    def test_arrival_never_precedes_departure(self):
        departure = datetime(2026, 5, 1, tzinfo=UTC)
        dep, arrival = compute_schedule(departure, -4)
        assert arrival >= dep


# ---------------------------------------------------------------------------
# Offer acceptance
# ---------------------------------------------------------------------------


class TestOfferAcceptance:
    @pytest.mark.asyncio
    async def test_accepting_one_offer_rejects_the_other(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        o1 = await seed_offer(
            session, rfq, forwarder_a,
            total_price=Decimal("2400.00"),
            departure_date=datetime(2026, 6, 1, tzinfo=UTC),
            estimated_transit_days=21,
        )
        o2 = await seed_offer(session, rfq, forwarder_b, total_price=Decimal("2100.00"))

        offer, shipment = await OfferService(session).accept_offer(
            o1.id, make_user(ProfileRole.CLIENT, user_id=client.id)
        )

        await session.refresh(o2)
        await session.refresh(rfq)
        assert offer.status == OfferStatus.ACCEPTED
        assert offer.accepted_at is not None
        assert o2.status == OfferStatus.REJECTED
        assert o2.rejected_reason == SIBLING_REJECTION_REASON
        assert rfq.status == RfqStatus.OFFER_ACCEPTED

        assert TRACKING_PATTERN.match(shipment.tracking_number)
        assert shipment.status == ShipmentStatus.PENDING_PAYMENT
        assert shipment.payment_status == PaymentStatus.UNPAID
        assert shipment.client_id == client.id
        assert shipment.forwarder_id == forwarder_a.id
        assert shipment.price == Decimal("2400.00")
        assert shipment.carrier_name == "Dakar Freight"
        assert shipment.carrier_logo == "https://cdn/x.png"
        assert shipment.cargo_packages == 12
        assert shipment.arrival_estimated_date - shipment.departure_date == timedelta(days=21)

        assert await _count(session, Shipment, Shipment.rfq_id == rfq.id) == 1
        accepted = await _count(
            session, RfqOffer, RfqOffer.rfq_id == rfq.id, RfqOffer.status == OfferStatus.ACCEPTED
        )
        assert accepted == 1
        # Client confirmation and forwarder contract email
        assert await _count(session, EmailQueue) == 2

    @pytest.mark.asyncio
    async def test_already_rejected_offer_keeps_its_reason(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)
        rejected_at = datetime(2026, 1, 2, tzinfo=UTC)
        o2 = await seed_offer(
            session, rfq, forwarder_b,
            status=OfferStatus.REJECTED,
            rejected_reason="Too expensive",
            rejected_at=rejected_at,
        )

        await OfferService(session).accept_offer(o1.id, make_user(user_id=client.id))

        await session.refresh(o2)
        assert o2.status == OfferStatus.REJECTED
        assert o2.rejected_reason == "Too expensive"

    @pytest.mark.asyncio
    async def test_default_departure_is_not_in_the_past(self, async_test_session):
        session = async_test_session
        client, forwarder_a, _, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)
        before = datetime.now(UTC)

        _, shipment = await OfferService(session).accept_offer(o1.id, make_user(user_id=client.id))

        assert shipment.departure_date >= before
        assert shipment.arrival_estimated_date >= shipment.departure_date

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, async_test_session):
        session = async_test_session
        client, forwarder_a, _, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)
        _, shipment = await OfferService(session).accept_offer(o1.id, make_user(user_id=client.id))

        result = await AutomationService(session).handle_offer_acceptance(o1.id, rfq.id)

        assert result.outcome == AutomationOutcome.ALREADY_DONE
        assert result.value.id == shipment.id
        assert await _count(session, Shipment, Shipment.rfq_id == rfq.id) == 1
        assert await _count(session, EmailQueue) == 2

    @pytest.mark.asyncio
    async def test_unknown_offer_fails_without_writes(self, async_test_session):
        session = async_test_session
        _, _, _, rfq = await _marketplace(session)

        result = await AutomationService(session).handle_offer_acceptance(uuid.uuid4(), rfq.id)

        assert result.outcome == AutomationOutcome.FAILED
        assert isinstance(result.error, NotFoundException)
        assert await _count(session, Shipment) == 0

    @pytest.mark.asyncio
    async def test_offer_from_another_rfq_fails_without_writes(self, async_test_session):
        session = async_test_session
        client, forwarder_a, _, rfq = await _marketplace(session)
        other_rfq = await seed_rfq(session, client)
        offer = await seed_offer(session, other_rfq, forwarder_a)

        result = await AutomationService(session).handle_offer_acceptance(offer.id, rfq.id)

        assert result.outcome == AutomationOutcome.FAILED
        assert isinstance(result.error, BusinessRuleException)
        await session.refresh(rfq)
        assert rfq.status == RfqStatus.OPEN
        assert await _count(session, Shipment) == 0

    @pytest.mark.asyncio
    async def test_accepted_price_carries_over_and_sibling_reason_names_automation(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a, total_price=Decimal("90.00"))
        o2 = await seed_offer(session, rfq, forwarder_b, total_price=Decimal("110.00"))

        _, shipment = await OfferService(session).accept_offer(o1.id, make_user(user_id=client.id))

        await session.refresh(o2)
        assert shipment.price == Decimal("90.00")
        assert o2.status == OfferStatus.REJECTED
        assert "Automation" in o2.rejected_reason

    @pytest.mark.asyncio
    async def test_every_pending_sibling_is_rejected(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        forwarder_c = await seed_profile(session, ProfileRole.FORWARDER, company_name="Thies Cargo")
        forwarder_d = await seed_profile(session, ProfileRole.FORWARDER, company_name="Kaolack Logistics")
        chosen = await seed_offer(session, rfq, forwarder_a)
        siblings = [
            await seed_offer(session, rfq, forwarder_b),
            await seed_offer(session, rfq, forwarder_c),
            await seed_offer(session, rfq, forwarder_d),
        ]

        result = await AutomationService(session).handle_offer_acceptance(chosen.id, rfq.id)

        assert result.outcome == AutomationOutcome.COMPLETED
        for sibling in siblings:
            await session.refresh(sibling)
            assert sibling.status == OfferStatus.REJECTED
            assert sibling.rejected_reason == SIBLING_REJECTION_REASON
            assert sibling.rejected_at is not None
        await session.refresh(chosen)
        assert chosen.status == OfferStatus.PENDING
        assert chosen.rejected_reason is None
        assert chosen.rejected_at is None

    @pytest.mark.asyncio
    async def test_transient_offer_read_is_retried_inside_transaction(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)
        o2 = await seed_offer(session, rfq, forwarder_b)
        o1.status = OfferStatus.ACCEPTED
        await session.flush()

        load_offer = AutomationService._load_offer
        calls = []

        async def flaky_load_offer(self, offer_id):
            calls.append(offer_id)
            if len(calls) == 1:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return await load_offer(self, offer_id)

        with (
            patch.object(AutomationService, "_load_offer", flaky_load_offer),
            patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock) as sleep,
        ):
            result = await AutomationService(session).handle_offer_acceptance(o1.id, rfq.id)

        assert result.outcome == AutomationOutcome.COMPLETED
        assert len(calls) == 2
        sleep.assert_awaited_once()
        await session.refresh(o1)
        await session.refresh(o2)
        assert o1.status == OfferStatus.ACCEPTED
        assert o2.status == OfferStatus.REJECTED
        assert await _count(session, Shipment, Shipment.rfq_id == rfq.id) == 1

    @pytest.mark.asyncio
    async def test_accepting_on_closed_rfq_is_refused(self, async_test_session):
        session = async_test_session
        client, forwarder_a, forwarder_b, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)
        o2 = await seed_offer(session, rfq, forwarder_b)
        user = make_user(user_id=client.id)
        await OfferService(session).accept_offer(o1.id, user)

        with pytest.raises(BusinessRuleException):
            await OfferService(session).accept_offer(o2.id, user)

    @pytest.mark.asyncio
    async def test_only_rfq_owner_can_accept(self, async_test_session):
        session = async_test_session
        _, forwarder_a, _, rfq = await _marketplace(session)
        o1 = await seed_offer(session, rfq, forwarder_a)

        with pytest.raises(ForbiddenException):
            await OfferService(session).accept_offer(o1.id, make_user())


# ---------------------------------------------------------------------------
# Delivery feedback
# ---------------------------------------------------------------------------


class TestDeliveryFeedback:
    async def _delivered_shipment(self, session, automation_settings):
        client = await seed_profile(session, ProfileRole.CLIENT)
        forwarder = await seed_profile(
            session, ProfileRole.FORWARDER, automation_settings=automation_settings
        )
        shipment = await seed_shipment(
            session, client, forwarder, status=ShipmentStatus.DELIVERED
        )
        return client, shipment

    @pytest.mark.asyncio
    async def test_disabled_flag_suppresses_notification(self, async_test_session):
        client, shipment = await self._delivered_shipment(
            async_test_session, {"delivery_feedback_enabled": False}
        )

        result = await AutomationService(async_test_session).handle_shipment_delivery(
            shipment.id, client.id
        )

        assert result.outcome == AutomationOutcome.SUPPRESSED
        assert await _count(async_test_session, Notification) == 0
        assert await _count(async_test_session, EmailQueue) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flags", [None, {}, {"delivery_feedback_enabled": True}])
    async def test_absent_or_true_flag_sends_one_notification(self, async_test_session, flags):
        client, shipment = await self._delivered_shipment(async_test_session, flags)

        result = await AutomationService(async_test_session).handle_shipment_delivery(
            shipment.id, client.id
        )

        assert result.outcome == AutomationOutcome.COMPLETED
        notification = result.value
        assert notification.user_id == client.id
        assert notification.type == NotificationType.FEEDBACK_REQUEST
        assert notification.link == f"/dashboard/client/shipments/{shipment.id}"
        assert await _count(async_test_session, Notification) == 1
        assert await _count(async_test_session, EmailQueue) == 1

    @pytest.mark.asyncio
    async def test_store_error_becomes_failed_result(self, mock_db):
        mock_db.execute.side_effect = RuntimeError("connection reset")

        result = await AutomationService(mock_db).handle_shipment_delivery(
            uuid.uuid4(), uuid.uuid4()
        )

        assert result.outcome == AutomationOutcome.FAILED
        assert "connection reset" in result.error.message


# ---------------------------------------------------------------------------
# Stale RFQs
# ---------------------------------------------------------------------------


class TestStaleRfqs:
    @pytest.mark.asyncio
    async def test_old_rfq_without_offers_is_reminded_once(self, async_test_session):
        session = async_test_session
        now = datetime.now(UTC)
        client = await seed_profile(session, ProfileRole.CLIENT)
        forwarder = await seed_profile(session, ProfileRole.FORWARDER)
        stale = await seed_rfq(session, client, created_at=now - timedelta(hours=72))
        with_offer = await seed_rfq(session, client, created_at=now - timedelta(hours=72))
        await seed_offer(session, with_offer, forwarder)
        await seed_rfq(session, client, created_at=now - timedelta(hours=2))

        svc = AutomationService(session)
        first = await svc.check_stale_rfqs(now=now)
        second = await svc.check_stale_rfqs(now=now)

        assert first == {"checked": 1, "notified": 1}
        assert second == {"checked": 1, "notified": 0}
        reminders = await session.execute(
            select(Notification).where(Notification.type == NotificationType.RFQ_STALE)
        )
        (reminder,) = reminders.scalars().all()
        assert reminder.user_id == client.id
        assert reminder.link == f"/dashboard/client/rfq/{stale.id}"
