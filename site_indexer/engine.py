# File: site_indexer/engine.py
"""site_indexer.engine: orchestration layer between the CLI and the crawler."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_indexer.config import CrawlerConfig, load_config
from site_indexer.crawler.crawler import AsyncCrawler, ResultTable
from site_indexer.logger import logger

__all__ = ["Engine", "start_crawl"]


async def start_crawl(cfg: CrawlerConfig) -> ResultTable:
    """
    Run the crawler inside its session context and return the result table.

    Parameters
    ----------
    cfg : CrawlerConfig
        Crawl configuration; ``base_url`` must be set.
    """
    async with AsyncCrawler(cfg) as crawler:
        return await crawler.crawl()


class Engine:
    """Synchronous facade for scripts and tests: load config, run the crawl."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        return load_config(path)

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config

    def run(self, crawl_timeout: Optional[float] = None) -> ResultTable:
        """Run the crawl to completion, optionally bounded by *crawl_timeout* seconds."""
        logger.info("Starting crawl…")
        try:
            if crawl_timeout:
                return asyncio.run(asyncio.wait_for(start_crawl(self.config), timeout=crawl_timeout))
            return asyncio.run(start_crawl(self.config))
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", crawl_timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
