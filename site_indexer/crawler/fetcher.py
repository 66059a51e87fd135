"""
Fetcher module: a single GET per URL, classified into HTML body or skip.
"""
from __future__ import annotations

import asyncio
from typing import Union

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_indexer.config import CrawlerConfig
from site_indexer.crawler.cancellation import CancellationToken, run_cancellable
from site_indexer.crawler.models import FetchSkip, NetworkError, SkipReason
from site_indexer.logger import logger

__all__ = ("Fetcher", "FetchResult", "open_session")

FetchResult = Union[str, FetchSkip]


def open_session(config: CrawlerConfig) -> ClientSession:
    """Create the shared session; every request carries the crawler's User-Agent."""
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


class Fetcher:
    """Performs one GET per call. Never retries."""

    def __init__(self, session: ClientSession, config: CrawlerConfig) -> None:
        self.session = session
        self.config = config

    async def fetch(self, url: str, token: CancellationToken) -> FetchResult:
        """
        Fetch *url* unless the crawl is cancelled first.

        Returns the page text for a 2xx ``text/html`` response, otherwise a
        :class:`FetchSkip`. Transport failures and timeouts raise
        :class:`NetworkError`; cancellation raises ``Cancelled``.
        """
        logger.info("Crawling %s", url)
        return await run_cancellable(self._get(url), token)

    async def _get(self, url: str) -> FetchResult:
        try:
            async with self.session.get(url) as resp:
                status = resp.status
                if 400 <= status < 500:
                    logger.info("Client error fetching %s: %s %s", url, status, resp.reason)
                    return FetchSkip(url, SkipReason.CLIENT_ERROR, status=status)
                if not 200 <= status < 300:
                    logger.info("Failed to fetch %s: %s %s", url, status, resp.reason)
                    return FetchSkip(url, SkipReason.NON_SUCCESS_STATUS, status=status)
                ctype = resp.headers.get("Content-Type", "")
                if "text/html" not in ctype.lower():
                    logger.info("Non-HTML content at %s: %s", url, ctype or "<none>")
                    return FetchSkip(
                        url, SkipReason.NON_HTML_CONTENT, status=status, content_type=ctype or None
                    )
                return await resp.text(errors="replace")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(url, exc) from exc
