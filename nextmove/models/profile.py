"""Profile model — clients, forwarders, drivers, POS agents and admins."""

from __future__ import annotations

from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.models.enums import ProfileRole


class Profile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "profiles"

    email: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(200))
    company_name: Mapped[str | None] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(30))
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    role: Mapped[ProfileRole] = mapped_column(
        enum_column(ProfileRole), nullable=False, default=ProfileRole.CLIENT
    )
    # Per-user opt-outs, e.g. {"delivery_feedback_enabled": false}
    automation_settings: Mapped[dict | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql")
    )

    __table_args__ = (
        Index("ix_profiles_role", "role"),
    )

    @property
    def display_name(self) -> str | None:
        return self.company_name or self.full_name
