from __future__ import annotations

from sqlalchemy import JSON, Boolean
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import PaymentProvider


class PaymentGateway(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Provider credentials managed from the admin dashboard."""

    __tablename__ = "payment_gateways"

    provider: Mapped[PaymentProvider] = mapped_column(
        enum_column(PaymentProvider), nullable=False, unique=True
    )
    config: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_test_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
