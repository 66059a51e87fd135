"""HTML fact extraction for SiteIndexer.

Turns the markup of one page into a :class:`~site_indexer.crawler.models.PageFacts`
record:

* heading: trimmed text of the first ``<h1>`` or ``""``.
* lead paragraph: first ``<p>`` inside ``<main>`` when there is one, else
  the first ``<p>`` anywhere, trimmed, or ``""``.
* outgoing links and images: ``a[href]`` and ``img[src]`` resolved against the
  page URL, in document order.

Everything here is a pure function of its inputs.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_indexer.crawler.link_extractor import normalize_url
from site_indexer.crawler.models import PageFacts
from site_indexer.logger import logger

__all__: Sequence[str] = (
    "extract_page_facts",
    "get_heading",
    "get_first_paragraph",
    "get_urls",
    "get_images",
)


def _soup(html: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html, "html.parser")


def _resolve(ref: str, base_url: str) -> Optional[str]:
    """Absolute form of *ref* against *base_url*, or None if it cannot be resolved."""
    try:
        absolute = urljoin(base_url, ref.strip())
        parsed = urlsplit(absolute)
    except ValueError as exc:
        logger.debug("Invalid reference %r on %s: %s", ref, base_url, exc)
        return None
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        logger.debug("Unresolvable reference %r on %s", ref, base_url)
        return None
    return absolute


def _collect(soup: BeautifulSoup, tag_name: str, attr: str, base_url: str) -> List[str]:
    found: List[str] = []
    for tag in soup.find_all(tag_name, attrs={attr: True}):
        if not isinstance(tag, Tag):
            continue
        value = tag.get(attr)
        if not isinstance(value, str) or not value.strip():
            continue
        absolute = _resolve(value, base_url)
        if absolute is not None:
            found.append(absolute)
    return found


def get_heading(html: str | BeautifulSoup) -> str:
    tag = _soup(html).find("h1")
    return tag.get_text().strip() if tag else ""


def get_first_paragraph(html: str | BeautifulSoup) -> str:
    soup = _soup(html)
    main = soup.find("main")
    para = main.find("p") if isinstance(main, Tag) else None
    if para is None:
        para = soup.find("p")
    return para.get_text().strip() if para else ""


def get_urls(html: str | BeautifulSoup, base_url: str) -> List[str]:
    return _collect(_soup(html), "a", "href", base_url)


def get_images(html: str | BeautifulSoup, base_url: str) -> List[str]:
    return _collect(_soup(html), "img", "src", base_url)


def extract_page_facts(html: str, page_url: str) -> PageFacts:
    """Parse *html* once and build the facts record for *page_url*.

    Raises ``InvalidUrlError`` if *page_url* itself is not absolute.
    """
    soup = _soup(html)
    return PageFacts(
        url=normalize_url(page_url),
        heading=get_heading(soup),
        lead_paragraph=get_first_paragraph(soup),
        outgoing_links=tuple(get_urls(soup, page_url)),
        image_urls=tuple(get_images(soup, page_url)),
    )
