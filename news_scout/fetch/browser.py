"""
Shared headless browser for rendering client-side pages.

One Chromium process is launched lazily on first use and reused by every
extraction in the run. Each caller gets its own browser context, so cookies
and storage never leak between concurrent extractions. close() must be
called once at shutdown; it is a no-op when the browser was never launched.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncIterator, Callable

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)


class SharedBrowser:
    """Lazily launched, process-wide headless browser handle.

    Args:
        user_agent: User-Agent applied to every new context
        headless: Run Chromium without a window
        launcher: Optional factory returning a started Playwright driver;
            defaults to playwright's async_playwright().start
    """

    def __init__(
        self,
        user_agent: str | None = None,
        headless: bool = True,
        launcher: Callable[[], Any] | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.headless = headless
        self._launcher = launcher or _start_playwright
        self._lock = asyncio.Lock()
        self._playwright: Any = None
        self._browser: Any = None
        self._closed = False
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Any:
        """Return the running browser, launching it on first call."""
        if self._browser is not None:
            return self._browser
        async with self._lock:
            if self._closed:
                raise RuntimeError("SharedBrowser has been closed")
            if self._browser is None:
                logger.debug("Launching headless Chromium")
                self._playwright = await self._launcher()
                try:
                    self._browser = await self._playwright.chromium.launch(headless=self.headless)
                finally:
                    # A failed or cancelled launch must not leave the driver running.
                    if self._browser is None:
                        driver, self._playwright = self._playwright, None
                        await driver.stop()
                self.launch_count += 1
        return self._browser

    @asynccontextmanager
    async def context(self) -> AsyncIterator[Any]:
        """Open an isolated browser context for one extraction."""
        browser = await self.acquire()
        kwargs = {"user_agent": self.user_agent} if self.user_agent else {}
        ctx = await browser.new_context(**kwargs)
        try:
            yield ctx
        finally:
            await ctx.close()

    async def close(self) -> None:
        """Release the browser process. Safe to call repeatedly or before use."""
        async with self._lock:
            self._closed = True
            browser, self._browser = self._browser, None
            driver, self._playwright = self._playwright, None
        if browser is not None:
            await browser.close()
            logger.debug("Closed headless Chromium")
        if driver is not None:
            await driver.stop()

    async def __aenter__(self) -> "SharedBrowser":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def _start_playwright() -> Any:
    return await async_playwright().start()
