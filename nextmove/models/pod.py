"""Proof-of-delivery model — document sets confirming a shipment arrived."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column, utcnow
from nextmove.models.enums import PodStatus

if TYPE_CHECKING:
    from nextmove.models.shipment import Shipment


class Pod(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "pods"

    shipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False
    )
    tracking_number: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[PodStatus] = mapped_column(
        enum_column(PodStatus), nullable=False, default=PodStatus.PENDING
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    submitted_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    recipient_name: Mapped[str | None] = mapped_column(String(200))
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    # [{"url": ..., "name": ..., "type": ...}]
    documents: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )
    notes: Mapped[str | None] = mapped_column(Text)

    shipment: Mapped[Shipment] = relationship("Shipment", lazy="noload")

    __table_args__ = (
        Index("ix_pods_shipment_id", "shipment_id"),
        Index("ix_pods_status", "status"),
    )
