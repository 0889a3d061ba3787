"""Tests for the tiered scrape escalator."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from news_scout.config import ExtractConfig, ScrapeConfig
from news_scout.core.errors import ConfigError, ExtractionError, ScrapeExhaustedError
from news_scout.core.types import ExtractionResult, Failure, SinglePage
from news_scout.fetch.escalator import (
    ExtractionTier,
    ScrapeEscalator,
    first_success,
    is_protected_host,
    managed_tier,
)


LONG_ARTICLE = "<html><head><title>Long read</title></head><body><article>" + "Notes of iris. " * 20 + "</article></body></html>"
SHORT_ARTICLE = "<html><head><title>Teaser</title></head><body><article>" + "x" * 40 + "</article></body></html>"
MANAGED_MARKDOWN = "# Managed title\n\n" + "Rendered by the managed service. " * 5


def _cfg(**overrides) -> ScrapeConfig:
    cfg = ScrapeConfig(browser_settle_seconds=0)
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def _handler(page_html: str | None = None, page_status: int = 200, managed: dict | None = None, managed_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            if managed is None:
                return httpx.Response(500, json={"success": False, "error": "unexpected call"})
            return httpx.Response(managed_status, json=managed)
        return httpx.Response(page_status, text=page_html or "")

    return handler


def test_first_success_stops_at_first_winning_tier():
    calls: list[str] = []

    def tier(name: str, content: str | None) -> ExtractionTier:
        async def strategy(url: str) -> ExtractionResult:
            calls.append(name)
            if content is None:
                raise ExtractionError(f"{name} failed")
            return ExtractionResult(title=name, content=content)

        return ExtractionTier(name, strategy)

    result = asyncio.run(
        first_success([tier("one", None), tier("two", "ok"), tier("three", "never")], "https://x.example")
    )

    assert result.title == "two"
    assert calls == ["one", "two"]


def test_first_success_aggregates_causes():
    async def failing(url: str) -> ExtractionResult:
        raise ExtractionError("nope")

    with pytest.raises(ScrapeExhaustedError) as excinfo:
        asyncio.run(first_success([ExtractionTier("a", failing), ExtractionTier("b", failing)], "https://x.example"))

    assert excinfo.value.url == "https://x.example"
    assert excinfo.value.causes == [("a", "nope"), ("b", "nope")]
    assert "https://x.example" in str(excinfo.value)


def test_sufficient_http_content_never_escalates(mock_transport, make_browser):
    transport, requests = mock_transport(_handler(page_html=LONG_ARTICLE))
    browser, drivers = make_browser(html=LONG_ARTICLE)
    escalator = ScrapeEscalator(_cfg(), browser=browser, api_key="key", transport=transport)

    result = asyncio.run(escalator.extract("https://blog.example/post"))

    assert result.title == "Long read"
    assert len(result.content) >= 100
    assert [r.method for r in requests] == ["GET"]
    assert drivers == []


def test_short_http_content_escalates_to_browser(mock_transport, make_browser):
    transport, requests = mock_transport(_handler(page_html=SHORT_ARTICLE))
    browser, drivers = make_browser(html=LONG_ARTICLE)
    escalator = ScrapeEscalator(_cfg(), browser=browser, api_key="key", transport=transport)

    result = asyncio.run(escalator.extract("https://spa.example/post"))

    assert result.title == "Long read"
    assert len(drivers) == 1
    context = drivers[0].browsers[0].contexts[0]
    assert context.pages[0].visited == ["https://spa.example/post"]
    assert context.closed
    assert all(r.method == "GET" for r in requests)


def test_empty_body_escalates_by_length_only(mock_transport):
    transport, requests = mock_transport(_handler(page_html="", managed={"success": True, "data": {"markdown": MANAGED_MARKDOWN}}))
    escalator = ScrapeEscalator(_cfg(), browser=None, api_key="key", transport=transport)

    result = asyncio.run(escalator.extract("https://empty.example/"))

    assert [r.method for r in requests] == ["GET", "POST"]
    assert result.title == "Managed title"
    assert result.content.startswith("# Managed title")


def test_protected_domain_skips_to_managed(mock_transport, make_browser):
    managed = {
        "success": True,
        "data": {"markdown": MANAGED_MARKDOWN, "metadata": {"title": "Fragrantica story"}},
    }
    transport, requests = mock_transport(_handler(page_html=LONG_ARTICLE, managed=managed))
    browser, drivers = make_browser(html=LONG_ARTICLE)
    escalator = ScrapeEscalator(_cfg(), browser=browser, api_key="key", transport=transport)

    result = asyncio.run(escalator.extract("https://www.fragrantica.com/news/123"))

    assert result.title == "Fragrantica story"
    assert [r.method for r in requests] == ["POST"]
    assert drivers == []
    sent = json.loads(requests[0].content)
    assert sent["url"] == "https://www.fragrantica.com/news/123"
    assert sent["formats"] == ["markdown"]
    assert requests[0].headers["Authorization"] == "Bearer key"


def test_protected_domain_without_key_fails_without_page_fetch(mock_transport, make_browser):
    transport, requests = mock_transport(_handler(page_html=LONG_ARTICLE))
    browser, drivers = make_browser(html=LONG_ARTICLE)
    escalator = ScrapeEscalator(_cfg(), browser=browser, api_key="", transport=transport)

    outcome = asyncio.run(escalator.fetch("https://fragrantica.com/news/1", "fragrantica"))

    assert isinstance(outcome, Failure)
    assert "FIRECRAWL_API_KEY" in outcome.reason
    assert requests == []
    assert drivers == []


def test_all_tiers_failing_yields_single_failure(mock_transport, make_browser):
    transport, _ = mock_transport(_handler(page_status=500))
    browser, _ = make_browser(error=TimeoutError("navigation timed out"))
    escalator = ScrapeEscalator(_cfg(), browser=browser, api_key="", transport=transport)

    with pytest.raises(ScrapeExhaustedError) as excinfo:
        asyncio.run(escalator.extract("https://broken.example/a"))

    names = [name for name, _ in excinfo.value.causes]
    assert names == ["http", "browser", "managed"]
    assert "HTTP 500" in excinfo.value.causes[0][1]
    assert "navigation" in excinfo.value.causes[1][1]

    outcome = asyncio.run(escalator.fetch("https://broken.example/a", "broken"))
    assert isinstance(outcome, Failure)
    assert "https://broken.example/a" in outcome.reason


def test_fetch_wraps_success_as_single_page(mock_transport):
    transport, _ = mock_transport(_handler(page_html=LONG_ARTICLE))
    escalator = ScrapeEscalator(_cfg(), api_key="", transport=transport)

    outcome = asyncio.run(escalator.fetch(" https://blog.example/post ", "blog"))

    assert isinstance(outcome, SinglePage)
    assert outcome.url == "https://blog.example/post"
    assert outcome.title == "Long read"


def test_tier_caps_are_applied(mock_transport, make_browser):
    huge = "<article>" + "y" * 10000 + "</article>"
    transport, _ = mock_transport(_handler(page_html=huge))
    escalator = ScrapeEscalator(_cfg(), api_key="", transport=transport)

    result = asyncio.run(escalator.extract("https://huge.example/"))

    assert len(result.content) == 2000


def test_managed_tier_requires_key():
    tier = managed_tier(_cfg(), api_key=None)

    with pytest.raises(ConfigError):
        asyncio.run(tier.strategy("https://x.example"))


def test_managed_tier_rejects_short_content(mock_transport):
    transport, _ = mock_transport(_handler(managed={"success": True, "data": {"markdown": "too short"}}))
    tier = managed_tier(_cfg(), api_key="key", transport=transport)

    with pytest.raises(ExtractionError, match="minimum 50"):
        asyncio.run(tier.strategy("https://x.example"))


def test_managed_tier_reports_provider_error(mock_transport):
    transport, _ = mock_transport(
        _handler(managed={"success": False, "error": "Payment required"}, managed_status=402)
    )
    tier = managed_tier(_cfg(), api_key="key", transport=transport)

    with pytest.raises(ExtractionError, match="Payment required"):
        asyncio.run(tier.strategy("https://x.example"))


def test_managed_tier_accepts_crawl4ai_result_shape(mock_transport):
    managed = {"results": [{"markdown": {"raw_markdown": MANAGED_MARKDOWN}}]}
    transport, _ = mock_transport(_handler(managed=managed))
    tier = managed_tier(_cfg(managed_max_chars=60), api_key="key", transport=transport)

    result = asyncio.run(tier.strategy("https://x.example"))

    assert result.title == "Managed title"
    assert len(result.content) == 60


def test_is_protected_host_matches_subdomains_only():
    domains = ["wsj.com"]
    assert is_protected_host("https://www.wsj.com/articles/x", domains)
    assert is_protected_host("https://WSJ.com/", domains)
    assert not is_protected_host("https://notwsj.com/", domains)
    assert not is_protected_host("not a url", domains)


def test_failing_fallback_extractor_still_escalates(mock_transport):
    transport, requests = mock_transport(
        _handler(page_html="", managed={"success": True, "data": {"markdown": MANAGED_MARKDOWN}})
    )
    escalator = ScrapeEscalator(
        _cfg(),
        ExtractConfig(primary="selectors", fallback=["readability"]),
        browser=None,
        api_key="key",
        transport=transport,
    )

    outcome = asyncio.run(escalator.fetch("https://empty.example/", "empty"))

    assert isinstance(outcome, SinglePage)
    assert outcome.title == "Managed title"
    assert [r.method for r in requests] == ["GET", "POST"]
