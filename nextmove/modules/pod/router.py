"""Proof-of-delivery review router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import PodStatus, ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.pod.schemas import PodResponse, PodReviewRequest
from nextmove.modules.pod.service import PodService

router = APIRouter(prefix="/pods", tags=["pods"])


@router.get("", response_model=list[PodResponse])
async def list_pods(
    status: PodStatus | None = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    require_roles(user, ProfileRole.ADMIN, ProfileRole.FORWARDER)
    svc = PodService(db)
    pods = await svc.list_pods(user, status=status)
    return [PodResponse.from_record(p) for p in pods]


@router.post("/{pod_id}/review", response_model=PodResponse)
async def review_pod(
    pod_id: uuid.UUID,
    body: PodReviewRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Verify or reject a pending POD. A note is required either way."""
    require_roles(user, ProfileRole.ADMIN, ProfileRole.FORWARDER)
    svc = PodService(db)
    pod = await svc.review_pod(pod_id, body.status, body.notes, user)
    return PodResponse.from_record(pod)
