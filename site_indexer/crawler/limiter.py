"""
Global cap on in-flight fetches.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from site_indexer.crawler.cancellation import CancellationToken, run_cancellable
from site_indexer.crawler.models import Cancelled

__all__ = ("ConcurrencyLimiter", "LimiterSlot")


class LimiterSlot:
    """One held fetch slot. Releasing twice is a no-op."""

    __slots__ = ("_limiter", "_released")

    def __init__(self, limiter: ConcurrencyLimiter) -> None:
        self._limiter = limiter
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._limiter._release()


class ConcurrencyLimiter:
    """
    Semaphore-backed limiter that fails fast once the crawl is cancelled.

    Waiters are served in the semaphore's order; no priority is implied.
    """

    def __init__(self, max_concurrency: int, token: CancellationToken) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.max_concurrency = max_concurrency
        self._token = token
        self._sem = asyncio.Semaphore(max_concurrency)
        self._in_flight = 0
        self.peak_in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def acquire(self) -> LimiterSlot:
        """Wait for a free slot; raise :class:`Cancelled` if the crawl stops first."""
        self._token.raise_if_set()
        if not self._sem.locked():
            await self._sem.acquire()
        else:
            await run_cancellable(self._sem.acquire(), self._token)
        if self._token.is_set:
            self._sem.release()
            raise Cancelled(self._token.reason or "cancelled")
        self._in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
        return LimiterSlot(self)

    def _release(self) -> None:
        self._in_flight -= 1
        self._sem.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[LimiterSlot]:
        held = await self.acquire()
        try:
            yield held
        finally:
            held.release()
