"""Shared fakes for fetcher, browser and pipeline tests."""

from __future__ import annotations

import asyncio
from typing import Callable

import httpx
import pytest

from news_scout.fetch.browser import SharedBrowser


class FakePage:
    def __init__(self, html: str | None = None, error: Exception | None = None) -> None:
        self._html = html or ""
        self._error = error
        self.visited: list[str] = []

    async def goto(self, url, wait_until=None, timeout=None):  # noqa: ANN001
        self.visited.append(url)
        if self._error is not None:
            raise self._error

    async def content(self) -> str:
        return self._html


class FakeContext:
    def __init__(self, page_factory: Callable[[], FakePage]) -> None:
        self._page_factory = page_factory
        self.pages: list[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        page = self._page_factory()
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeChromium:
    def __init__(self, page_factory: Callable[[], FakePage]) -> None:
        self._page_factory = page_factory
        self.contexts: list[FakeContext] = []
        self.closed = False

    async def new_context(self, **kwargs) -> FakeContext:  # noqa: ANN003
        ctx = FakeContext(self._page_factory)
        self.contexts.append(ctx)
        return ctx

    async def close(self) -> None:
        self.closed = True


class FakePlaywright:
    def __init__(self, page_factory: Callable[[], FakePage]) -> None:
        self.browsers: list[FakeChromium] = []
        self.stopped = False
        self.chromium = self
        self._page_factory = page_factory

    async def launch(self, headless: bool = True) -> FakeChromium:
        # Yield so concurrent initializers interleave.
        await asyncio.sleep(0)
        browser = FakeChromium(self._page_factory)
        self.browsers.append(browser)
        return browser

    async def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def make_browser():
    """Build a SharedBrowser backed by fake Playwright objects.

    Returns (browser, drivers) where drivers collects every FakePlaywright
    the launcher started.
    """

    def factory(html: str | None = None, error: Exception | None = None):
        drivers: list[FakePlaywright] = []

        async def launcher() -> FakePlaywright:
            driver = FakePlaywright(lambda: FakePage(html=html, error=error))
            drivers.append(driver)
            return driver

        return SharedBrowser(launcher=launcher), drivers

    return factory


@pytest.fixture
def mock_transport():
    """Build an httpx.MockTransport that records every request it serves."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]):
        requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        return httpx.MockTransport(recording_handler), requests

    return factory


def rss_document(items: list[dict[str, str]], title: str = "Test Feed") -> bytes:
    """Render a minimal RSS 2.0 document from item dicts."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0"><channel>',
        f"<title>{title}</title>",
        "<link>https://feed.example.com</link>",
        "<description>Test</description>",
    ]
    for item in items:
        parts.append("<item>")
        for key, value in item.items():
            parts.append(f"<{key}>{value}</{key}>")
        parts.append("</item>")
    parts.append("</channel></rss>")
    return "".join(parts).encode("utf-8")


@pytest.fixture
def rss():
    return rss_document
