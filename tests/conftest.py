# File: tests/conftest.py
from __future__ import annotations

import asyncio
from typing import Dict, List, Union

import pytest
from site_indexer.crawler.cancellation import CancellationToken, run_cancellable
from site_indexer.crawler.link_extractor import normalize_url
from site_indexer.crawler.models import FetchSkip, PageFacts, SkipReason

Outcome = Union[str, FetchSkip, BaseException]


def page(*links: str, heading: str = "", para: str = "") -> str:
    """Build a small HTML page linking to *links*."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><body><h1>{heading}</h1><p>{para}</p>{anchors}</body></html>"


class FakeFetcher:
    """
    In-memory fetch client keyed by normalized URL.

    Unknown keys answer like a 404. Exceptions in *pages* are raised.
    """

    def __init__(self, pages: Dict[str, Outcome], delay: float = 0.0) -> None:
        self.pages = pages
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, url: str, token: CancellationToken) -> Union[str, FetchSkip]:
        self.calls.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await run_cancellable(asyncio.sleep(self.delay), token)
            outcome = self.pages.get(normalize_url(url))
        finally:
            self.in_flight -= 1
        if outcome is None:
            return FetchSkip(url, SkipReason.CLIENT_ERROR, status=404)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def fetched_keys(self) -> List[str]:
        return [normalize_url(u) for u in self.calls]


@pytest.fixture()
def sample_results() -> Dict[str, PageFacts]:
    """Two pages inserted out of key order."""
    return {
        "example.com/b": PageFacts(
            url="example.com/b",
            heading='Hello, "World"',
            lead_paragraph="line1\nline2",
            outgoing_links=("https://example.com/1", "https://example.com/2"),
            image_urls=(),
        ),
        "example.com": PageFacts(
            url="example.com",
            heading="Home",
            lead_paragraph="Welcome",
            outgoing_links=(),
            image_urls=("https://example.com/logo.png",),
        ),
    }


@pytest.fixture()
def make_page():
    return page


@pytest.fixture()
def fake_fetcher():
    """Factory fixture: ``fake_fetcher(pages, delay=...)``."""
    return FakeFetcher
