"""
Data models and error types for the SiteIndexer crawler.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class CrawlerError(Exception):
    """Base class for crawler errors."""


class InvalidUrlError(CrawlerError, ValueError):
    """URL is not a parseable absolute URL."""

    def __init__(self, url: str, reason: str = "not an absolute URL") -> None:
        super().__init__(f"Invalid URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class NetworkError(CrawlerError):
    """Transport-level failure while fetching a URL."""

    def __init__(self, url: str, cause: BaseException | str) -> None:
        super().__init__(f"Network error fetching {url}: {cause}")
        self.url = url
        self.cause = cause


class Cancelled(CrawlerError):
    """The crawl was cancelled while an operation was waiting."""


class SkipReason(str, enum.Enum):
    CLIENT_ERROR = "client_error"
    NON_SUCCESS_STATUS = "non_success_status"
    NON_HTML_CONTENT = "non_html_content"


@dataclass(frozen=True, slots=True)
class FetchSkip:
    """Expected, non-exceptional outcome of a fetch that yields no HTML."""

    url: str
    reason: SkipReason
    status: Optional[int] = None
    content_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PageFacts:
    """Facts extracted from one fetched page, keyed by its normalized URL."""

    url: str
    heading: str = ""
    lead_paragraph: str = ""
    outgoing_links: Tuple[str, ...] = ()
    image_urls: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "heading": self.heading,
            "lead_paragraph": self.lead_paragraph,
            "outgoing_links": list(self.outgoing_links),
            "image_urls": list(self.image_urls),
        }


@dataclass(slots=True)
class CrawlStats:
    """Counters collected during one crawl for the summary log line."""

    claimed: int = 0
    recorded: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: int = 0
    skip_reasons: Dict[str, int] = field(default_factory=dict)

    def record_skip(self, reason: SkipReason) -> None:
        self.skipped += 1
        self.skip_reasons[reason.value] = self.skip_reasons.get(reason.value, 0) + 1
