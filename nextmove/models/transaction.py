from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import PaymentProvider, TransactionStatus


class Transaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "transactions"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    shipment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("shipments.id", ondelete="SET NULL")
    )
    # Reference handed to the provider and echoed back by its webhook
    reference: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="XOF")
    provider: Mapped[PaymentProvider | None] = mapped_column(enum_column(PaymentProvider))
    status: Mapped[TransactionStatus] = mapped_column(
        enum_column(TransactionStatus), nullable=False, default=TransactionStatus.PENDING
    )
    # "metadata" is reserved on declarative classes
    metadata_extra: Mapped[dict] = mapped_column(
        "metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )

    __table_args__ = (
        Index("ix_transactions_user_id", "user_id"),
        Index("ix_transactions_shipment_id", "shipment_id"),
        Index("ix_transactions_status", "status"),
    )
