"""
URL normalization and crawl-scope helpers for SiteIndexer.
"""
from __future__ import annotations

from urllib.parse import urlsplit

from site_indexer.crawler.models import InvalidUrlError

__all__ = ("normalize_url", "scope_of", "same_scope")

_WEB_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """
    Reduce *url* to its dedup key: lowercase ``host + path``.

    Scheme, letter case, query, fragment and a trailing slash never change
    the key, so ``HTTPS://Example.com/Path/`` and ``http://example.com/path``
    both become ``example.com/path``.
    """
    raw = url.strip()
    if raw.endswith("/"):
        raw = raw[:-1]
    lowered = raw.lower()
    try:
        parsed = urlsplit(lowered)
        host = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc
    if not parsed.scheme or not host:
        raise InvalidUrlError(url)

    full_path = f"{host}{parsed.path}"
    if full_path.endswith("/"):
        full_path = full_path[:-1]
    return full_path


def scope_of(url: str) -> str:
    """Return the lowercased host of *url*; port and userinfo are ignored."""
    try:
        parsed = urlsplit(url.strip())
        host = parsed.hostname
        # port is validated lazily by urllib
        parsed.port
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc
    if not parsed.scheme or not host:
        raise InvalidUrlError(url)
    return host


def same_scope(url: str, scope: str) -> bool:
    """True when *url* is an http(s) URL whose host is *scope*."""
    host = scope_of(url)
    return urlsplit(url.strip()).scheme.lower() in _WEB_SCHEMES and host == scope
