from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import RfqStatus, ServiceType, TransportMode

if TYPE_CHECKING:
    from nextmove.models.profile import Profile
    from nextmove.models.rfq_offer import RfqOffer


class RfqRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rfq_requests"

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )

    # Route
    origin_port: Mapped[str] = mapped_column(String(100), nullable=False)
    origin_country: Mapped[str | None] = mapped_column(String(2))
    destination_port: Mapped[str] = mapped_column(String(100), nullable=False)
    destination_country: Mapped[str | None] = mapped_column(String(2))

    # Cargo
    cargo_type: Mapped[str | None] = mapped_column(String(100))
    cargo_description: Mapped[str | None] = mapped_column(Text)
    weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    volume_cbm: Mapped[Decimal | None] = mapped_column(Numeric(12, 3))
    quantity: Mapped[int | None] = mapped_column(Integer)

    transport_mode: Mapped[TransportMode] = mapped_column(
        enum_column(TransportMode), nullable=False, default=TransportMode.SEA
    )
    service_type: Mapped[ServiceType] = mapped_column(
        enum_column(ServiceType), nullable=False, default=ServiceType.STANDARD
    )
    status: Mapped[RfqStatus] = mapped_column(
        enum_column(RfqStatus), nullable=False, default=RfqStatus.OPEN
    )

    # Relationships
    client: Mapped[Profile] = relationship("Profile", lazy="noload")
    offers: Mapped[list[RfqOffer]] = relationship(
        "RfqOffer", back_populates="rfq", lazy="noload"
    )

    __table_args__ = (
        Index("ix_rfq_requests_client_id", "client_id"),
        Index("ix_rfq_requests_status", "status"),
    )
