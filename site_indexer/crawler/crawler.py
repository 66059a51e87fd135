# === FILE: site_indexer/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import dataclasses
import time
from typing import Callable, Dict, Optional, Protocol

from pydantic import ValidationError

from site_indexer.config import DEFAULT_USER_AGENT, CrawlerConfig
from site_indexer.crawler.cancellation import CancellationToken
from site_indexer.crawler.fetcher import Fetcher, FetchResult, open_session
from site_indexer.crawler.limiter import ConcurrencyLimiter
from site_indexer.crawler.link_extractor import normalize_url, same_scope, scope_of
from site_indexer.crawler.models import (
    Cancelled,
    CrawlStats,
    FetchSkip,
    InvalidUrlError,
    NetworkError,
    PageFacts,
)
from site_indexer.crawler.registry import ClaimResult, VisitRegistry
from site_indexer.logger import logger
from site_indexer.parser.html_parser import extract_page_facts

__all__ = ("AsyncCrawler", "FetchClient", "ResultTable", "crawl")

ResultTable = Dict[str, PageFacts]
Extractor = Callable[[str, str], PageFacts]


class FetchClient(Protocol):
    async def fetch(self, url: str, token: CancellationToken) -> FetchResult: ...


class AsyncCrawler:
    """Asynchronous same-domain crawler bounded by a page limit and a fetch-concurrency cap."""

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        fetcher: Optional[FetchClient] = None,
        extractor: Extractor = extract_page_facts,
    ) -> None:
        self.config = config
        self._validate_config()
        self.seed_url = str(config.base_url)
        self.fetcher = fetcher
        self._extract = extractor
        self.session = None
        self.stats = CrawlStats()
        self.token = CancellationToken()
        self.registry = VisitRegistry(config.max_pages, self.token)
        self.limiter = ConcurrencyLimiter(config.max_concurrency, self.token)

    async def __aenter__(self) -> AsyncCrawler:
        if self.fetcher is None:
            self.session = open_session(self.config)
            self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()

    async def crawl(self) -> ResultTable:
        if self.fetcher is None:
            raise RuntimeError("Fetcher not initialized; use 'async with AsyncCrawler(...)'")
        scope = scope_of(self.seed_url)
        logger.info("Crawl started: %s", self.seed_url)
        start = time.monotonic()

        results = await self._expand(self.seed_url, scope)

        duration = time.monotonic() - start
        logger.info(
            "Finished: %d pages recorded, %d URLs claimed in %.2f s (%.2f pages/s)",
            len(results), self.stats.claimed, duration, len(results) / duration if duration else 0,
        )
        if self.stats.skipped or self.stats.failed:
            logger.info("Skipped: %d %s, failed: %d", self.stats.skipped, self.stats.skip_reasons, self.stats.failed)
        if self.registry.stopped:
            logger.info("Stopped early: %s", self.token.reason)
        return results

    async def _expand(self, url: str, scope: str) -> ResultTable:
        """Visit *url* and, recursively, every same-scope link reachable from it."""
        results: ResultTable = {}
        if self.token.is_set:
            return results
        try:
            if not same_scope(url, scope):
                return results
            key = normalize_url(url)
        except InvalidUrlError as exc:
            logger.debug("Dropping link: %s", exc)
            return results

        if self.registry.try_claim(key) is not ClaimResult.CLAIMED:
            return results
        self.stats.claimed += 1

        try:
            slot = await self.limiter.acquire()
        except Cancelled:
            self.stats.cancelled += 1
            return results
        try:
            outcome = await self.fetcher.fetch(url, self.token)
        except NetworkError as exc:
            logger.warning("%s", exc)
            self.stats.failed += 1
            return results
        except Cancelled:
            self.stats.cancelled += 1
            return results
        finally:
            slot.release()

        if isinstance(outcome, FetchSkip):
            self.stats.record_skip(outcome.reason)
            return results

        facts = self._extract(outcome, url)
        if facts.url != key:
            facts = dataclasses.replace(facts, url=key)
        results[key] = facts
        self.stats.recorded += 1

        children = await asyncio.gather(*(self._expand(link, scope) for link in facts.outgoing_links))
        for child in children:
            results.update(child)
        return results

    def _validate_config(self) -> None:
        if self.config.base_url is None:
            raise ValueError("base_url is required to start a crawl")


async def crawl(
    seed_url: str,
    max_concurrency: int,
    max_pages: int,
    *,
    fetcher: Optional[FetchClient] = None,
    extractor: Extractor = extract_page_facts,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = 10.0,
) -> ResultTable:
    """
    Crawl the domain of *seed_url* and return facts keyed by normalized URL.

    Raises ``InvalidUrlError`` for an unparseable seed and ``ValueError`` for
    non-positive limits, before any request is sent. Per-URL failures are
    logged and never escape.
    """
    normalize_url(seed_url)
    scope_of(seed_url)
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be a positive integer, got {max_concurrency}")
    if max_pages < 1:
        raise ValueError(f"max_pages must be a positive integer, got {max_pages}")

    try:
        config = CrawlerConfig(
            base_url=seed_url,
            max_concurrency=max_concurrency,
            max_pages=max_pages,
            user_agent=user_agent,
            timeout=timeout,
        )
    except ValidationError as exc:
        if any(err["loc"][:1] == ("base_url",) for err in exc.errors()):
            raise InvalidUrlError(seed_url, "not an http(s) URL") from exc
        raise
    async with AsyncCrawler(config, fetcher=fetcher, extractor=extractor) as crawler:
        return await crawler.crawl()
