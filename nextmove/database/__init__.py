from nextmove.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_column
from nextmove.database.engine import async_session, engine
from nextmove.database.retry import fetch_with_retry
from nextmove.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "enum_column",
    "fetch_with_retry",
    "get_db",
]
