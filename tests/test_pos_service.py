"""Tests for PosService — cash session lifecycle."""

import uuid
from decimal import Decimal

import pytest

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import PosSessionStatus, ProfileRole
from nextmove.modules.pos.service import PosService
from tests.factories import make_user, seed_profile


class TestPosSessions:
    @pytest.mark.asyncio
    async def test_open_then_reuse_active_session(self, async_test_session):
        agent = await seed_profile(async_test_session, ProfileRole.AGENT)
        svc = PosService(async_test_session)

        first, created = await svc.open_session(agent.id, Decimal("25000"), station_id="DKR-01")
        again, created_again = await svc.open_session(agent.id, Decimal("0"))

        assert created is True
        assert created_again is False
        assert again.id == first.id
        assert first.status == PosSessionStatus.OPEN
        assert first.total_sales == Decimal("0")
        assert (await svc.get_active_session(agent.id)).id == first.id

    @pytest.mark.asyncio
    async def test_no_active_session(self, async_test_session):
        assert await PosService(async_test_session).get_active_session(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_close_stamps_closed_at(self, async_test_session):
        agent = await seed_profile(async_test_session, ProfileRole.AGENT)
        svc = PosService(async_test_session)
        session, _ = await svc.open_session(agent.id, Decimal("1000"))

        closed = await svc.close_session(session.id, make_user(ProfileRole.AGENT, user_id=agent.id))

        assert closed.status == PosSessionStatus.CLOSED
        assert closed.closed_at is not None
        assert await svc.get_active_session(agent.id) is None

    @pytest.mark.asyncio
    async def test_closing_twice_is_refused(self, async_test_session):
        agent = await seed_profile(async_test_session, ProfileRole.AGENT)
        svc = PosService(async_test_session)
        user = make_user(ProfileRole.AGENT, user_id=agent.id)
        session, _ = await svc.open_session(agent.id, Decimal("1000"))
        await svc.close_session(session.id, user)

        with pytest.raises(BusinessRuleException):
            await svc.close_session(session.id, user)

    @pytest.mark.asyncio
    async def test_other_agent_cannot_close(self, async_test_session):
        agent = await seed_profile(async_test_session, ProfileRole.AGENT)
        svc = PosService(async_test_session)
        session, _ = await svc.open_session(agent.id, Decimal("1000"))

        with pytest.raises(ForbiddenException):
            await svc.close_session(session.id, make_user(ProfileRole.AGENT))

    @pytest.mark.asyncio
    async def test_unknown_session(self, async_test_session):
        with pytest.raises(NotFoundException):
            await PosService(async_test_session).close_session(uuid.uuid4(), make_user(ProfileRole.ADMIN))
