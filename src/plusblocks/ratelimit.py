"""FIFO admission control for requests to the catalog site.

Every caller awaits ``acquire()``; a single drain task grants waiters one at
a time so consecutive grants are at least ``delay_seconds`` apart, however
many callers are queued.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


class RateLimiter:
    def __init__(
        self,
        delay_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._clock = clock
        self._last_granted: float | None = None
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def queue_length(self) -> int:
        return len(self._waiters)

    async def acquire(self) -> None:
        """Return once the next request may be issued.

        Callers removed by ``clear_queue()`` are never resolved; wrap the call
        in ``asyncio.timeout`` when that matters.
        """
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()
        self._waiters.append(waiter)
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())
        await waiter

    def reset(self) -> None:
        """Make the next waiter eligible immediately."""
        self._last_granted = None

    def clear_queue(self) -> None:
        """Drop all pending waiters without granting them."""
        dropped = len(self._waiters)
        self._waiters.clear()
        if dropped:
            log.debug("rate_limiter_queue_cleared", dropped=dropped)

    async def _drain(self) -> None:
        while self._waiters:
            waiter = self._waiters[0]
            if waiter.done():
                # Cancelled while queued; it does not consume a slot.
                self._waiters.popleft()
                continue

            if self._last_granted is not None:
                remaining = self.delay_seconds - (self._clock() - self._last_granted)
                if remaining > 0:
                    await asyncio.sleep(remaining)
                    # The head may have been cancelled or cleared meanwhile.
                    continue

            self._waiters.popleft()
            self._last_granted = self._clock()
            waiter.set_result(None)
