from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nextmove.database.base import Base, UUIDPrimaryKeyMixin, enum_column, utcnow
from nextmove.models.enums import ShipmentStatus

if TYPE_CHECKING:
    from nextmove.models.shipment import Shipment


class ShipmentEvent(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "shipment_events"

    shipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ShipmentStatus] = mapped_column(enum_column(ShipmentStatus), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    shipment: Mapped[Shipment] = relationship("Shipment", back_populates="events", lazy="noload")

    __table_args__ = (
        Index("ix_shipment_events_shipment_id", "shipment_id"),
    )
