from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import OfferStatus

if TYPE_CHECKING:
    from nextmove.models.profile import Profile
    from nextmove.models.rfq import RfqRequest


class RfqOffer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rfq_offers"

    rfq_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rfq_requests.id", ondelete="CASCADE"), nullable=False
    )
    forwarder_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="XOF")
    departure_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    estimated_transit_days: Mapped[int | None] = mapped_column(Integer)

    status: Mapped[OfferStatus] = mapped_column(
        enum_column(OfferStatus), nullable=False, default=OfferStatus.PENDING
    )
    rejected_reason: Mapped[str | None] = mapped_column(String(500))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    rfq: Mapped[RfqRequest] = relationship("RfqRequest", back_populates="offers", lazy="noload")
    forwarder: Mapped[Profile] = relationship("Profile", lazy="noload")

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_rfq_offers_total_price_non_negative"),
        Index("ix_rfq_offers_rfq_id", "rfq_id"),
        Index("ix_rfq_offers_forwarder_id", "forwarder_id"),
        Index("ix_rfq_offers_status", "status"),
    )
