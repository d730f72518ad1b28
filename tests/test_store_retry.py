"""Tests for fetch_with_retry — bounded backoff on transient store errors."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from nextmove.database.retry import fetch_with_retry


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestFetchWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="row")
        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await fetch_with_retry(operation, max_attempts=3, initial_delay=1.0) == "row"
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_with_doubling_delay(self):
        operation = AsyncMock(side_effect=[_operational_error(), _operational_error(), "row"])
        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await fetch_with_retry(operation, max_attempts=3, initial_delay=1.0)

        assert result == "row"
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_reraises_after_last_attempt(self):
        operation = AsyncMock(side_effect=_operational_error())
        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(OperationalError):
                await fetch_with_retry(operation, max_attempts=3, initial_delay=0.5)
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_non_transient_error_is_not_retried(self):
        operation = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("dup")))
        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(IntegrityError):
                await fetch_with_retry(operation, max_attempts=3, initial_delay=1.0)
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_transaction_it_opened(self):
        session = MagicMock()
        session.in_transaction = MagicMock(return_value=False)
        session.rollback = AsyncMock()
        operation = AsyncMock(side_effect=[_operational_error(), "row"])

        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock):
            await fetch_with_retry(operation, max_attempts=2, initial_delay=0.1, session=session)

        session.rollback.assert_awaited_once()
        session.begin_nested.assert_not_called()

    @pytest.mark.asyncio
    async def test_retries_inside_callers_transaction_use_savepoints(self):
        session = MagicMock()
        session.in_transaction = MagicMock(return_value=True)
        session.begin_nested = MagicMock()
        session.rollback = AsyncMock()
        operation = AsyncMock(side_effect=[_operational_error(), "row"])

        with patch("nextmove.database.retry.asyncio.sleep", new_callable=AsyncMock):
            await fetch_with_retry(operation, max_attempts=2, initial_delay=0.1, session=session)

        session.rollback.assert_not_awaited()
        assert session.begin_nested.call_count == 2

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            await fetch_with_retry(AsyncMock(), max_attempts=0)
