"""Point-of-sale cash sessions for counter agents."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from nextmove.models.enums import PosSessionStatus
from nextmove.models.pos_session import PosSession
from nextmove.modules.auth.dependencies import AuthenticatedUser

logger = logging.getLogger(__name__)


class PosService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_session(self, agent_id: uuid.UUID) -> PosSession | None:
        result = await self.db.execute(
            select(PosSession)
            .where(PosSession.agent_id == agent_id, PosSession.status == PosSessionStatus.OPEN)
            .order_by(PosSession.opened_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def open_session(
        self,
        agent_id: uuid.UUID,
        initial_cash: Decimal,
        station_id: str | None = None,
    ) -> tuple[PosSession, bool]:
        """Open a session, or hand back the agent's open one.

        Returns ``(session, created)``.
        """
        active = await self.get_active_session(agent_id)
        if active is not None:
            return active, False

        session = PosSession(
            agent_id=agent_id,
            station_id=station_id,
            initial_cash=initial_cash,
            total_sales=Decimal("0"),
            status=PosSessionStatus.OPEN,
            opened_at=datetime.now(UTC),
        )
        self.db.add(session)
        await self.db.flush()
        logger.info("POS session %s opened by agent %s", session.id, agent_id)
        return session, True

    async def close_session(self, session_id: uuid.UUID, user: AuthenticatedUser) -> PosSession:
        result = await self.db.execute(select(PosSession).where(PosSession.id == session_id))
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundException(f"POS session {session_id} not found")
        if session.agent_id != user.id and not user.is_admin:
            raise ForbiddenException("Only the agent who opened the session can close it")
        if session.status == PosSessionStatus.CLOSED:
            raise BusinessRuleException(f"POS session {session_id} is already closed")

        session.status = PosSessionStatus.CLOSED
        session.closed_at = datetime.now(UTC)
        await self.db.flush()
        logger.info("POS session %s closed (sales %s)", session.id, session.total_sales)
        return session
