"""Unit tests for plusblocks.retry."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from plusblocks.config import ScraperSettings
from plusblocks.errors import BlockNotFoundError, CodeFetchError, is_retryable
from plusblocks.retry import RetryPolicy, with_retry


class _Flaky:
    """Fails ``failures`` times with ``error`` before returning "ok"."""

    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error or RuntimeError("boom")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


class TestRetryPolicy:
    def test_delay_doubles_and_caps(self) -> None:
        policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=3.0)
        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 3.0, 3.0]

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_from_settings(self) -> None:
        scraper = ScraperSettings(retry_max_attempts=4, retry_base_delay_seconds=0.5)
        policy = RetryPolicy.from_settings(scraper)
        assert policy.max_attempts == 4
        assert policy.base_delay == 0.5


class TestWithRetry:
    async def test_succeeds_after_failures(self) -> None:
        operation = _Flaky(failures=2)
        with patch("plusblocks.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_retry(operation, RetryPolicy())

        assert result == "ok"
        assert operation.calls == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    async def test_reraises_last_error(self) -> None:
        operation = _Flaky(failures=5)
        with patch("plusblocks.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RuntimeError, match="boom"):
                await with_retry(operation, RetryPolicy(max_attempts=3))
        assert operation.calls == 3

    async def test_on_retry_called_per_failure(self) -> None:
        seen: list[int] = []
        operation = _Flaky(failures=2)
        with patch("plusblocks.retry.asyncio.sleep", new=AsyncMock()):
            await with_retry(
                operation, RetryPolicy(), on_retry=lambda attempt, _exc: seen.append(attempt)
            )
        assert seen == [1, 2]

    async def test_retry_if_false_stops_immediately(self) -> None:
        operation = _Flaky(failures=2, error=BlockNotFoundError("marketing", "heroes"))
        with patch("plusblocks.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(BlockNotFoundError):
                await with_retry(operation, RetryPolicy(), retry_if=is_retryable)
        assert operation.calls == 1
        sleep.assert_not_awaited()

    async def test_recoverable_error_is_retried(self) -> None:
        operation = _Flaky(failures=1, error=CodeFetchError(0))
        with patch("plusblocks.retry.asyncio.sleep", new=AsyncMock()):
            result = await with_retry(operation, RetryPolicy(), retry_if=is_retryable)
        assert result == "ok"
        assert operation.calls == 2
