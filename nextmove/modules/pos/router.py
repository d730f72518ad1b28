"""POS session router for counter agents."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.pos.schemas import PosSessionOpenRequest, PosSessionResponse
from nextmove.modules.pos.service import PosService

router = APIRouter(prefix="/pos/sessions", tags=["pos"])


@router.get("/active", response_model=PosSessionResponse | None)
async def get_active_session(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's open session, or ``null``."""
    require_roles(user, ProfileRole.AGENT, ProfileRole.ADMIN)
    session = await PosService(db).get_active_session(user.id)
    return PosSessionResponse.model_validate(session) if session else None


@router.post("", response_model=PosSessionResponse)
async def open_session(
    body: PosSessionOpenRequest,
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open a session; returns the existing one (200) if the agent already has one."""
    require_roles(user, ProfileRole.AGENT, ProfileRole.ADMIN)
    session, created = await PosService(db).open_session(
        user.id, body.initial_cash, station_id=body.station_id
    )
    response.status_code = 201 if created else 200
    return PosSessionResponse.model_validate(session)


@router.post("/{session_id}/close", response_model=PosSessionResponse)
async def close_session(
    session_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_roles(user, ProfileRole.AGENT, ProfileRole.ADMIN)
    session = await PosService(db).close_session(session_id, user)
    return PosSessionResponse.model_validate(session)
