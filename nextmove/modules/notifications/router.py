"""Notification router — in-app inbox and admin SMS broadcast."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import ProfileRole
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user, require_roles
from nextmove.modules.notifications.schemas import (
    NotificationResponse,
    SmsResultResponse,
    SmsSendRequest,
)
from nextmove.modules.notifications.service import NotificationService
from nextmove.modules.notifications.sms import SmsService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notifications = await NotificationService(db).list_for_user(
        user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(notification_id, user.id)
    return NotificationResponse.model_validate(notification)


@router.post("/sms", response_model=list[SmsResultResponse])
async def send_sms(
    body: SmsSendRequest,
    user: AuthenticatedUser = Depends(get_current_user),
):
    """Admin only. Delivery failures are reported per recipient, not raised."""
    require_roles(user, ProfileRole.ADMIN)
    service = SmsService()
    try:
        results = await service.send_sms(body.to, body.content)
    finally:
        await service.close()
    return [SmsResultResponse.model_validate(r) for r in results]
