"""Bounded retry with exponential backoff for reads against the store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Network / connection failures. Integrity, data and programming errors are
# the caller's fault and are raised on the first attempt.
RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    ConnectionError,
    TimeoutError,
)


async def fetch_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int | None = None,
    initial_delay: float | None = None,
    session: AsyncSession | None = None,
) -> T:
    """Await ``operation()`` until it succeeds or ``max_attempts`` is reached.

    ``operation`` is a zero-argument factory, not a coroutine object, so each
    attempt issues a fresh statement. When ``session`` is given and the
    transaction was opened by the wrapped read itself, the session is rolled
    back between attempts. Inside a transaction the caller already holds,
    each attempt runs in its own SAVEPOINT, so a failed attempt is undone
    without losing the caller's earlier work.

    The delay doubles after each failed attempt. The last error is re-raised.
    """
    attempts = max_attempts if max_attempts is not None else settings.store_retry_max_attempts
    delay = initial_delay if initial_delay is not None else settings.store_retry_initial_delay_seconds
    if attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    owns_transaction = session is not None and not session.in_transaction()
    nested = session is not None and not owns_transaction

    for attempt in range(1, attempts + 1):
        try:
            if nested:
                async with session.begin_nested():
                    return await operation()
            return await operation()
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts:
                logger.error("Store query failed after %d attempts: %s", attempt, exc)
                raise
            logger.warning(
                "Store query failed (attempt %d/%d), retrying in %.1fs: %s",
                attempt, attempts, delay, exc,
            )
            if owns_transaction:
                await session.rollback()
            await asyncio.sleep(delay)
            delay *= 2

    raise RuntimeError("unreachable")  # pragma: no cover
