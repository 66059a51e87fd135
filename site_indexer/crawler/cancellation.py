"""
Cooperative cancellation for a single crawl.

A :class:`CancellationToken` is a one-way flag: once set it stays set.
Suspending operations race against it through :func:`run_cancellable`.
The token may be set from any thread; waiters on the event loop are woken
through ``call_soon_threadsafe`` when the setter runs elsewhere.
"""
from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, Optional, TypeVar

from site_indexer.crawler.models import Cancelled

__all__ = ("CancellationToken", "run_cancellable")

T = TypeVar("T")


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CancellationToken:
    """Per-crawl stop signal, set at most once and never reset."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._flag = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()
        self.reason: str | None = None

    @property
    def is_set(self) -> bool:
        return self._flag

    def set(self, reason: str = "cancelled") -> bool:
        """Set the token. Returns True only for the call that flipped it."""
        with self._lock:
            if self._flag:
                return False
            self.reason = reason
            self._flag = True
            loop = self._loop

        if loop is None or loop is _running_loop():
            self._event.set()
        elif not loop.is_closed():
            loop.call_soon_threadsafe(self._event.set)
        return True

    async def wait(self) -> None:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.get_running_loop()
            if self._flag:
                return
        await self._event.wait()

    def raise_if_set(self) -> None:
        if self._flag:
            raise Cancelled(self.reason or "cancelled")


async def run_cancellable(aw: Awaitable[T], token: CancellationToken) -> T:
    """
    Await *aw* unless *token* fires first.

    When the token wins, *aw* is cancelled and :class:`Cancelled` is raised.
    Exceptions from *aw* propagate unchanged.
    """
    work = asyncio.ensure_future(aw)
    if token.is_set:
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        token.raise_if_set()
    stopper = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({work, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        stopper.cancel()

    if work.done():
        return work.result()
    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    raise Cancelled(token.reason or "cancelled")
