"""Tests for PodService — review state machine and access rules."""

import uuid

import pytest
from pydantic import ValidationError

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import PodStatus, ProfileRole, ShipmentStatus
from nextmove.models.pod import Pod
from nextmove.modules.pod.schemas import PodResponse, PodReviewRequest
from nextmove.modules.pod.service import PodService
from tests.factories import make_user, seed_profile, seed_shipment


async def _pending_pod(session):
    client = await seed_profile(session, ProfileRole.CLIENT, company_name="Baobab Import")
    forwarder = await seed_profile(session, ProfileRole.FORWARDER, company_name="Dakar Freight")
    shipment = await seed_shipment(session, client, forwarder, status=ShipmentStatus.DELIVERED)
    pod = Pod(
        shipment_id=shipment.id,
        tracking_number=shipment.tracking_number,
        status=PodStatus.PENDING,
        recipient_name="Fatou Sow",
        documents=[],
    )
    session.add(pod)
    await session.flush()
    return forwarder, pod


class TestReviewPod:
    @pytest.mark.asyncio
    async def test_forwarder_verifies_own_pod(self, async_test_session):
        forwarder, pod = await _pending_pod(async_test_session)
        reviewer = make_user(ProfileRole.FORWARDER, user_id=forwarder.id)

        reviewed = await PodService(async_test_session).review_pod(
            pod.id, PodStatus.VERIFIED, "Signature matches", reviewer
        )

        assert reviewed.status == PodStatus.VERIFIED
        assert reviewed.verified_at is not None
        assert reviewed.reviewed_by == forwarder.id
        assert reviewed.notes == "Signature matches"

    @pytest.mark.asyncio
    async def test_rejection_leaves_verified_at_empty(self, async_test_session):
        _, pod = await _pending_pod(async_test_session)

        reviewed = await PodService(async_test_session).review_pod(
            pod.id, PodStatus.REJECTED, "Blurry photo", make_user(ProfileRole.ADMIN)
        )

        assert reviewed.status == PodStatus.REJECTED
        assert reviewed.verified_at is None

    @pytest.mark.asyncio
    async def test_reviewed_pod_is_final(self, async_test_session):
        _, pod = await _pending_pod(async_test_session)
        svc = PodService(async_test_session)
        admin = make_user(ProfileRole.ADMIN)
        await svc.review_pod(pod.id, PodStatus.VERIFIED, "ok", admin)

        with pytest.raises(BusinessRuleException):
            await svc.review_pod(pod.id, PodStatus.REJECTED, "changed my mind", admin)

    @pytest.mark.asyncio
    async def test_other_forwarder_is_refused(self, async_test_session):
        _, pod = await _pending_pod(async_test_session)

        with pytest.raises(ForbiddenException):
            await PodService(async_test_session).review_pod(
                pod.id, PodStatus.VERIFIED, "ok", make_user(ProfileRole.FORWARDER)
            )

    @pytest.mark.asyncio
    async def test_unknown_pod(self, async_test_session):
        with pytest.raises(NotFoundException):
            await PodService(async_test_session).review_pod(
                uuid.uuid4(), PodStatus.VERIFIED, "ok", make_user(ProfileRole.ADMIN)
            )


class TestListPods:
    @pytest.mark.asyncio
    async def test_forwarder_listing_is_scoped(self, async_test_session):
        forwarder, pod = await _pending_pod(async_test_session)
        svc = PodService(async_test_session)

        own = await svc.list_pods(make_user(ProfileRole.FORWARDER, user_id=forwarder.id))
        other = await svc.list_pods(make_user(ProfileRole.FORWARDER))

        assert [p.id for p in own] == [pod.id]
        assert other == []

    @pytest.mark.asyncio
    async def test_response_names_both_parties(self, async_test_session):
        _, pod = await _pending_pod(async_test_session)

        (loaded,) = await PodService(async_test_session).list_pods(make_user(ProfileRole.ADMIN))
        response = PodResponse.from_record(loaded)

        assert response.forwarder.name == "Dakar Freight"
        assert response.client.name == "Baobab Import"

    @pytest.mark.asyncio
    async def test_client_cannot_list(self, async_test_session):
        with pytest.raises(ForbiddenException):
            await PodService(async_test_session).list_pods(make_user(ProfileRole.CLIENT))


class TestPodReviewRequest:
    def test_pending_is_not_a_decision(self):
        with pytest.raises(ValidationError):
            PodReviewRequest(status=PodStatus.PENDING, notes="x")

    def test_notes_required(self):
        with pytest.raises(ValidationError):
            PodReviewRequest(status=PodStatus.VERIFIED, notes="")
