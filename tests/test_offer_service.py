"""Tests for OfferService — listing and rejection."""

import uuid

import pytest

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import OfferStatus, ProfileRole
from nextmove.modules.rfq.offer_service import OfferService
from tests.factories import make_user, seed_offer, seed_profile, seed_rfq


async def _rfq_with_two_offers(session):
    client = await seed_profile(session, ProfileRole.CLIENT)
    forwarder_a = await seed_profile(session, ProfileRole.FORWARDER, company_name="Dakar Freight")
    forwarder_b = await seed_profile(session, ProfileRole.FORWARDER, company_name="Sahel Lines")
    rfq = await seed_rfq(session, client)
    o1 = await seed_offer(session, rfq, forwarder_a)
    o2 = await seed_offer(session, rfq, forwarder_b)
    return client, forwarder_a, rfq, o1, o2


class TestListOffers:
    @pytest.mark.asyncio
    async def test_owner_sees_every_offer(self, async_test_session):
        client, _, rfq, o1, o2 = await _rfq_with_two_offers(async_test_session)

        offers = await OfferService(async_test_session).list_offers(
            rfq.id, make_user(user_id=client.id)
        )

        assert {o.id for o in offers} == {o1.id, o2.id}

    @pytest.mark.asyncio
    async def test_forwarder_sees_only_its_own(self, async_test_session):
        _, forwarder_a, rfq, o1, _ = await _rfq_with_two_offers(async_test_session)

        offers = await OfferService(async_test_session).list_offers(
            rfq.id, make_user(ProfileRole.FORWARDER, user_id=forwarder_a.id)
        )

        assert [o.id for o in offers] == [o1.id]

    @pytest.mark.asyncio
    async def test_other_client_is_forbidden(self, async_test_session):
        _, _, rfq, _, _ = await _rfq_with_two_offers(async_test_session)

        with pytest.raises(ForbiddenException):
            await OfferService(async_test_session).list_offers(rfq.id, make_user())


class TestRejectOffer:
    @pytest.mark.asyncio
    async def test_reject_records_reason(self, async_test_session):
        client, _, _, o1, o2 = await _rfq_with_two_offers(async_test_session)

        offer = await OfferService(async_test_session).reject_offer(
            o1.id, make_user(user_id=client.id), reason="Transit too long"
        )

        assert offer.status == OfferStatus.REJECTED
        assert offer.rejected_reason == "Transit too long"
        assert offer.rejected_at is not None
        assert o2.status == OfferStatus.PENDING

    @pytest.mark.asyncio
    async def test_rejecting_twice_is_refused(self, async_test_session):
        client, _, _, o1, _ = await _rfq_with_two_offers(async_test_session)
        svc = OfferService(async_test_session)
        user = make_user(user_id=client.id)
        await svc.reject_offer(o1.id, user)

        with pytest.raises(BusinessRuleException):
            await svc.reject_offer(o1.id, user)

    @pytest.mark.asyncio
    async def test_unknown_offer(self, async_test_session):
        with pytest.raises(NotFoundException):
            await OfferService(async_test_session).reject_offer(uuid.uuid4(), make_user())
