from __future__ import annotations

import uuid

from sqlalchemy import JSON, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import EmailStatus, RecipientGroup


class EmailQueue(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "email_queue"

    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    recipient_group: Mapped[RecipientGroup] = mapped_column(
        enum_column(RecipientGroup), nullable=False, default=RecipientGroup.SPECIFIC
    )
    # Email addresses or profile ids; ids are resolved at send time
    recipient_emails: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )
    status: Mapped[EmailStatus] = mapped_column(
        enum_column(EmailStatus), nullable=False, default=EmailStatus.PENDING
    )
    error_message: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_email_queue_status", "status"),
    )
