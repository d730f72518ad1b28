from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    link: str | None = None
    read: bool
    created_at: datetime


class SmsSendRequest(BaseModel):
    to: list[str] = Field(..., min_length=1)
    content: str = Field(..., min_length=1, max_length=1600)


class SmsResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipient: str
    sent: bool
    provider: str
    error: str | None = None
