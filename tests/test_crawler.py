# File: tests/test_crawler.py
# Orchestrator tests against an in-memory fetch client
from __future__ import annotations

import asyncio
import time

import pytest

from site_indexer.config import CrawlerConfig
from site_indexer.crawler.crawler import AsyncCrawler, crawl
from site_indexer.crawler.models import FetchSkip, InvalidUrlError, NetworkError, SkipReason

SEED = "https://example.com"


async def run_crawler(config: CrawlerConfig, fetcher, timeout: float = 10.0):
    async with AsyncCrawler(config, fetcher=fetcher) as crawler:
        results = await asyncio.wait_for(crawler.crawl(), timeout=timeout)
    return crawler, results


# --------------------------------------------------------------------------- #
#                                 Traversal                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_basic_crawl(fake_fetcher, make_page):
    fetcher = fake_fetcher(
        {
            "example.com": make_page("/a", "/b", heading="Home", para="Welcome."),
            "example.com/a": make_page("/", "/b", heading="A"),
            "example.com/b": make_page("/a", heading="B"),
        }
    )
    results = await crawl(SEED, 2, 50, fetcher=fetcher)

    assert set(results) == {"example.com", "example.com/a", "example.com/b"}
    assert results["example.com"].heading == "Home"
    assert results["example.com"].lead_paragraph == "Welcome."
    assert results["example.com/a"].outgoing_links == ("https://example.com/", "https://example.com/b")
    assert sorted(fetcher.fetched_keys) == ["example.com", "example.com/a", "example.com/b"]


@pytest.mark.asyncio()
async def test_duplicate_spellings_fetched_once(fake_fetcher, make_page):
    fetcher = fake_fetcher(
        {
            "example.com": make_page("/About", "/about/", "http://example.com/about", "/about#team"),
            "example.com/about": make_page(),
        }
    )
    results = await crawl(SEED, 4, 50, fetcher=fetcher)

    assert set(results) == {"example.com", "example.com/about"}
    assert fetcher.fetched_keys.count("example.com/about") == 1


@pytest.mark.asyncio()
async def test_off_domain_links_never_fetched(fake_fetcher, make_page):
    fetcher = fake_fetcher(
        {
            "example.com": make_page("https://other.org/", "https://sub.example.com/x", "mailto:me@example.com"),
            "other.org": make_page(),
        }
    )
    results = await crawl(SEED, 2, 50, fetcher=fetcher)

    assert list(results) == ["example.com"]
    assert fetcher.fetched_keys == ["example.com"]


@pytest.mark.asyncio()
async def test_same_host_with_port_or_userinfo_is_crawled(fake_fetcher, make_page):
    fetcher = fake_fetcher(
        {
            "example.com": make_page("https://example.com:443/about", "https://guest@example.com/team"),
            "example.com/about": make_page(heading="About"),
            "example.com/team": make_page(heading="Team"),
        }
    )
    results = await crawl(SEED, 2, 50, fetcher=fetcher)

    assert set(results) == {"example.com", "example.com/about", "example.com/team"}
    assert results["example.com/about"].heading == "About"


@pytest.mark.asyncio()
async def test_network_error_on_seed_returns_empty(fake_fetcher):
    fetcher = fake_fetcher({"example.com": NetworkError(SEED, "connection refused")})

    results = await crawl(SEED, 2, 10, fetcher=fetcher)

    assert results == {}
    assert len(fetcher.calls) == 1


@pytest.mark.asyncio()
async def test_failures_and_skips_are_contained(fake_fetcher, make_page):
    fetcher = fake_fetcher(
        {
            "example.com": make_page("/broken", "/logo.png", "/missing", "/server-error", "/ok"),
            "example.com/broken": NetworkError("https://example.com/broken", "reset"),
            "example.com/logo.png": FetchSkip("x", SkipReason.NON_HTML_CONTENT, status=200, content_type="image/png"),
            "example.com/server-error": FetchSkip("x", SkipReason.NON_SUCCESS_STATUS, status=503),
            "example.com/ok": make_page(heading="OK"),
        }
    )
    crawler, results = await run_crawler(CrawlerConfig(base_url=SEED, max_concurrency=3), fetcher)

    assert set(results) == {"example.com", "example.com/ok"}
    assert crawler.stats.claimed == 6
    assert crawler.stats.failed == 1
    assert crawler.stats.skipped == 3
    assert crawler.stats.skip_reasons == {
        "non_html_content": 1,
        "non_success_status": 1,
        "client_error": 1,
    }
    # claimed but unrecorded keys stay claimed
    assert set(results) <= crawler.registry.claimed
    assert "example.com/broken" in crawler.registry.claimed


@pytest.mark.asyncio()
async def test_results_keyed_by_normalized_url(fake_fetcher, make_page):
    fetcher = fake_fetcher({"example.com/docs": make_page(heading="Docs")})

    results = await crawl("HTTPS://Example.com/Docs/", 1, 5, fetcher=fetcher)

    assert list(results) == ["example.com/docs"]
    assert results["example.com/docs"].url == "example.com/docs"


# --------------------------------------------------------------------------- #
#                           Limits and cancellation                           #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_max_pages_bounds_claims(fake_fetcher, make_page):
    links = [f"/page{i}" for i in range(50)]
    pages = {"example.com": make_page(*links)}
    pages.update({f"example.com/page{i}": make_page() for i in range(50)})
    fetcher = fake_fetcher(pages)

    crawler, results = await run_crawler(
        CrawlerConfig(base_url=SEED, max_concurrency=4, max_pages=5), fetcher
    )

    assert len(crawler.registry) == 5
    assert crawler.registry.stopped
    assert crawler.token.is_set
    assert len(fetcher.calls) <= 5
    assert set(fetcher.fetched_keys) <= crawler.registry.claimed
    assert set(results) <= crawler.registry.claimed


@pytest.mark.asyncio()
async def test_capacity_cancels_in_flight_fetches(fake_fetcher, make_page):
    links = [f"/page{i}" for i in range(20)]
    pages = {"example.com": make_page(*links)}
    pages.update({f"example.com/page{i}": make_page() for i in range(20)})
    fetcher = fake_fetcher(pages, delay=2.0)

    start = time.perf_counter()
    crawler, results = await run_crawler(
        CrawlerConfig(base_url=SEED, max_concurrency=2, max_pages=3), fetcher, timeout=5
    )
    elapsed = time.perf_counter() - start

    # seed fetch takes one delay, aborted children do not add more
    assert elapsed < 2.0 * 1.75
    assert len(crawler.registry) == 3
    assert crawler.token.is_set
    assert list(results) == ["example.com"]
    assert crawler.stats.cancelled == 2
    assert crawler.limiter.in_flight == 0


@pytest.mark.asyncio()
async def test_fetch_concurrency_is_bounded(fake_fetcher, make_page):
    links = [f"/page{i}" for i in range(20)]
    pages = {"example.com": make_page(*links)}
    pages.update({f"example.com/page{i}": make_page() for i in range(20)})
    fetcher = fake_fetcher(pages, delay=0.01)

    crawler, results = await run_crawler(
        CrawlerConfig(base_url=SEED, max_concurrency=3, max_pages=100), fetcher
    )

    assert len(results) == 21
    assert fetcher.peak_in_flight == 3
    assert crawler.limiter.peak_in_flight == 3
    assert not crawler.token.is_set


@pytest.mark.asyncio()
async def test_deep_chain_awaits_all_descendants(fake_fetcher, make_page):
    depth = 30
    pages = {"example.com": make_page("/n1")}
    pages.update({f"example.com/n{i}": make_page(f"/n{i + 1}") for i in range(1, depth)})
    pages[f"example.com/n{depth}"] = make_page(heading="bottom")
    fetcher = fake_fetcher(pages, delay=0.001)

    results = await crawl(SEED, 2, 1000, fetcher=fetcher)

    assert len(results) == depth + 1
    assert results[f"example.com/n{depth}"].heading == "bottom"


# --------------------------------------------------------------------------- #
#                               Argument checks                               #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
@pytest.mark.parametrize("seed", ["not a url", "/relative", "example.com"])
async def test_invalid_seed_fails_before_fetching(fake_fetcher, seed):
    fetcher = fake_fetcher({})
    with pytest.raises(InvalidUrlError):
        await crawl(seed, 2, 10, fetcher=fetcher)
    assert fetcher.calls == []


@pytest.mark.asyncio()
@pytest.mark.parametrize("concurrency,pages", [(0, 10), (2, 0), (-1, 5)])
async def test_non_positive_limits_rejected(fake_fetcher, concurrency, pages):
    fetcher = fake_fetcher({})
    with pytest.raises(ValueError):
        await crawl(SEED, concurrency, pages, fetcher=fetcher)
    assert fetcher.calls == []


def test_crawler_requires_base_url():
    with pytest.raises(ValueError):
        AsyncCrawler(CrawlerConfig())


@pytest.mark.asyncio()
async def test_crawl_outside_context_raises():
    crawler = AsyncCrawler(CrawlerConfig(base_url=SEED))
    with pytest.raises(RuntimeError):
        await crawler.crawl()


@pytest.mark.asyncio()
async def test_non_web_seed_is_invalid_url(fake_fetcher):
    with pytest.raises(InvalidUrlError):
        await crawl("ftp://example.com/", 2, 10, fetcher=fake_fetcher({}))
