"""site_indexer.crawler: traversal engine (registry, limiter, fetcher, orchestrator)."""

from site_indexer.crawler.crawler import AsyncCrawler, crawl
from site_indexer.crawler.models import (
    Cancelled,
    CrawlerError,
    FetchSkip,
    InvalidUrlError,
    NetworkError,
    PageFacts,
    SkipReason,
)

__all__ = [
    "AsyncCrawler",
    "crawl",
    "Cancelled",
    "CrawlerError",
    "FetchSkip",
    "InvalidUrlError",
    "NetworkError",
    "PageFacts",
    "SkipReason",
]
