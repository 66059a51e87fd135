"""
Visited registry: the single gate that bounds total crawl work.
"""
from __future__ import annotations

import enum
import threading
from typing import FrozenSet, Set

from site_indexer.crawler.cancellation import CancellationToken
from site_indexer.logger import logger

__all__ = ("ClaimResult", "VisitRegistry")


class ClaimResult(enum.Enum):
    CLAIMED = "claimed"
    ALREADY_VISITED = "already_visited"
    CAPACITY_REACHED = "capacity_reached"


class VisitRegistry:
    """
    Set of claimed normalized keys with a hard capacity.

    :meth:`try_claim` runs membership test, capacity check and insertion
    under one ``threading.Lock``, so it is atomic for coroutines and for
    real threads alike. Once capacity is hit the registry stops for good
    and sets the crawl's cancellation token, which wakes waiters on the
    event loop even when the claim ran on a worker thread.
    """

    def __init__(self, capacity: int, token: CancellationToken) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._token = token
        self._claimed: Set[str] = set()
        self._stopped = False
        self._lock = threading.Lock()

    def try_claim(self, key: str) -> ClaimResult:
        with self._lock:
            if self._stopped:
                return ClaimResult.CAPACITY_REACHED
            if key in self._claimed:
                return ClaimResult.ALREADY_VISITED
            if len(self._claimed) >= self.capacity:
                self._stopped = True
                self._token.set(f"page limit of {self.capacity} reached")
                logger.info("Page limit reached (%d), stopping crawl", self.capacity)
                return ClaimResult.CAPACITY_REACHED
            self._claimed.add(key)
            return ClaimResult.CLAIMED

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def claimed(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._claimed)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._claimed

    def __len__(self) -> int:
        with self._lock:
            return len(self._claimed)
