from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column, utcnow
from nextmove.models.enums import PosSessionStatus


class PosSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "pos_sessions"

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    station_id: Mapped[str | None] = mapped_column(String(50))
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    initial_cash: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    total_sales: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    status: Mapped[PosSessionStatus] = mapped_column(
        enum_column(PosSessionStatus), nullable=False, default=PosSessionStatus.OPEN
    )

    __table_args__ = (
        Index("ix_pos_sessions_agent_id_status", "agent_id", "status"),
    )
