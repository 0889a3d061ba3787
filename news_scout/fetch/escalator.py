"""
Tiered scrape escalation for single pages.

Extraction strategies are ordered from cheapest to most capable:
1. http: plain retrieval with httpx + content-container heuristics
2. browser: render in the shared headless browser, then the same heuristics
3. managed: delegate to a managed scraping service (needs an API key)

Each tier is an async strategy (url) -> ExtractionResult that raises on
failure or insufficient content. first_success() runs tiers strictly in
order and stops at the first one that succeeds. Hosts known for strong bot
defenses skip straight to the managed tier.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import re
from typing import Any, Awaitable, Callable
from urllib.parse import urlparse

import httpx

from ..config import ExtractConfig, ScrapeConfig, get_extraction_api_key
from ..core.errors import (
    ConfigError,
    ExtractionError,
    MalformedResponseError,
    NewsScoutError,
    ScrapeExhaustedError,
)
from ..core.types import ExtractionResult, Failure, FetchOutcome, SinglePage
from ..utils.logging import log_event
from .browser import SharedBrowser
from .extractor import extract_page

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Awaitable[ExtractionResult]]

_MARKDOWN_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+(.+?)\s*#*\s*$", re.MULTILINE)


@dataclass(frozen=True)
class ExtractionTier:
    """One named rung of the escalation ladder."""

    name: str
    strategy: Strategy


async def first_success(tiers: list[ExtractionTier], url: str) -> ExtractionResult:
    """Run tiers in order and return the first successful result.

    Each tier completes (success or failure) before the next one starts.

    Raises:
        ScrapeExhaustedError: Every tier failed; carries each tier's cause.
    """
    causes: list[tuple[str, str]] = []
    for tier in tiers:
        try:
            result = await tier.strategy(url)
        except NewsScoutError as exc:
            causes.append((tier.name, str(exc)))
            log_event(
                logger,
                f"Tier {tier.name} failed for {url}: {exc}",
                level=logging.DEBUG,
                event="scrape_tier_failed",
                tier=tier.name,
                url=url,
            )
            continue
        log_event(
            logger,
            f"Tier {tier.name} extracted {len(result.content)} chars from {url}",
            event="scrape_tier_succeeded",
            tier=tier.name,
            url=url,
            chars=len(result.content),
        )
        return result
    raise ScrapeExhaustedError(url, causes)


def http_tier(
    cfg: ScrapeConfig,
    extract_cfg: ExtractConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExtractionTier:
    """Tier 1: plain HTTP retrieval plus HTML heuristics."""

    async def strategy(url: str) -> ExtractionResult:
        headers = {"User-Agent": cfg.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=cfg.http_timeout_seconds,
                headers=headers,
                follow_redirects=True,
                transport=transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(f"timed out after {cfg.http_timeout_seconds}s") from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(f"HTTP {exc.response.status_code} fetching {url}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ExtractionError(f"{type(exc).__name__}: {exc}") from exc

        result = extract_page(response.text, cfg.http_max_chars, extract_cfg.primary, extract_cfg.fallback)
        _require_length(result, cfg.http_min_chars)
        return result

    return ExtractionTier("http", strategy)


def browser_tier(
    cfg: ScrapeConfig,
    extract_cfg: ExtractConfig,
    browser: SharedBrowser,
) -> ExtractionTier:
    """Tier 2: render in an isolated context of the shared headless browser."""

    async def strategy(url: str) -> ExtractionResult:
        try:
            async with browser.context() as ctx:
                page = await ctx.new_page()
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=int(cfg.browser_timeout_seconds * 1000),
                )
                # Give client-side rendering time to populate the DOM.
                await asyncio.sleep(cfg.browser_settle_seconds)
                html = await page.content()
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(f"browser navigation failed: {type(exc).__name__}: {exc}") from exc

        result = extract_page(html, cfg.browser_max_chars, extract_cfg.primary, extract_cfg.fallback)
        _require_length(result, cfg.browser_min_chars)
        return result

    return ExtractionTier("browser", strategy)


def managed_tier(
    cfg: ScrapeConfig,
    api_key: str | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExtractionTier:
    """Tier 3: managed scraping service returning markdown."""

    async def strategy(url: str) -> ExtractionResult:
        if not api_key:
            raise ConfigError(
                f"managed extraction requires an API key (set {cfg.managed_api_key_env})"
            )

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        payload = {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": True,
            "timeout": int(cfg.managed_timeout_seconds * 1000),
        }
        try:
            async with httpx.AsyncClient(
                timeout=cfg.managed_timeout_seconds,
                transport=transport,
            ) as client:
                response = await client.post(cfg.managed_api_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise ExtractionError(f"managed service timed out after {cfg.managed_timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"managed service request failed: {type(exc).__name__}: {exc}") from exc

        title, markdown = parse_managed_response(response)
        result = ExtractionResult(
            title=title or first_markdown_heading(markdown),
            content=markdown.strip()[: cfg.managed_max_chars],
        )
        _require_length(result, cfg.managed_min_chars)
        return result

    return ExtractionTier("managed", strategy)


def parse_managed_response(response: httpx.Response) -> tuple[str, str]:
    """Return (title, markdown) from a managed scraping response.

    Understands the Firecrawl shape ({"success", "data": {"markdown",
    "metadata"}}) and the Crawl4AI API shape ({"results": [{"markdown"}]}).
    """
    try:
        data = response.json()
    except ValueError as exc:
        if response.status_code != 200:
            raise ExtractionError(f"managed service HTTP {response.status_code}: {response.text[:200]}") from exc
        raise MalformedResponseError(f"managed service returned non-JSON body: {response.text[:200]}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(f"managed service returned {type(data).__name__}, expected object")

    if response.status_code != 200 or data.get("success") is False:
        error = data.get("error") or data.get("message") or "unknown provider error"
        raise ExtractionError(f"managed service error (HTTP {response.status_code}): {error}")

    body: Any = data.get("data", data)
    if isinstance(body, dict) and isinstance(body.get("results"), list):
        if not body["results"]:
            raise ExtractionError("managed service returned an empty results array")
        body = body["results"][0]
    if not isinstance(body, dict):
        raise MalformedResponseError("managed service result is not an object")

    markdown = body.get("markdown") or ""
    if isinstance(markdown, dict):
        markdown = markdown.get("raw_markdown") or ""
    if not isinstance(markdown, str):
        raise MalformedResponseError("managed service markdown is not text")

    metadata = body.get("metadata") or {}
    title = metadata.get("title") if isinstance(metadata, dict) else None
    return (title or "").strip(), markdown


def first_markdown_heading(markdown: str) -> str:
    match = _MARKDOWN_HEADING_RE.search(markdown or "")
    return match.group(1).strip() if match else ""


def is_protected_host(url: str, protected_domains: list[str]) -> bool:
    """Whether the URL's host (or a parent domain) is on the protected list."""
    host = (urlparse(url).hostname or "").lower().rstrip(".")
    if not host:
        return False
    for domain in protected_domains:
        domain = domain.lower().lstrip(".")
        if host == domain or host.endswith("." + domain):
            return True
    return False


def _require_length(result: ExtractionResult, min_chars: int) -> None:
    if len(result.content) < min_chars:
        raise ExtractionError(
            f"only {len(result.content)} chars extracted (minimum {min_chars})"
        )


class ScrapeEscalator:
    """Extract readable content from one URL via the tier ladder.

    Args:
        cfg: Scrape thresholds, caps, timeouts and protected domains
        extract_cfg: HTML extractor chain used by the http and browser tiers
        browser: Shared browser for the browser tier; None disables that tier
        api_key: Managed extraction key; defaults to the configured lookup
        transport: Optional httpx transport (tests)
    """

    def __init__(
        self,
        cfg: ScrapeConfig,
        extract_cfg: ExtractConfig | None = None,
        browser: SharedBrowser | None = None,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cfg = cfg
        self.extract_cfg = extract_cfg or ExtractConfig()
        self.browser = browser
        self.api_key = api_key if api_key is not None else get_extraction_api_key(cfg)
        self.transport = transport

    def tiers_for(self, url: str) -> list[ExtractionTier]:
        managed = managed_tier(self.cfg, self.api_key, self.transport)
        if is_protected_host(url, self.cfg.protected_domains):
            log_event(
                logger,
                f"{url} is on a protected domain, skipping to managed extraction",
                level=logging.DEBUG,
                event="scrape_protected_domain",
                url=url,
            )
            return [managed]

        tiers = [http_tier(self.cfg, self.extract_cfg, self.transport)]
        if self.browser is not None:
            tiers.append(browser_tier(self.cfg, self.extract_cfg, self.browser))
        tiers.append(managed)
        return tiers

    async def extract(self, url: str) -> ExtractionResult:
        """Run the ladder for one URL.

        Raises:
            ScrapeExhaustedError: No applicable tier produced enough content.
        """
        return await first_success(self.tiers_for(url), url)

    async def fetch(self, locator: str, label: str) -> FetchOutcome:
        url = locator.strip()
        if not url:
            return Failure(f"No URL provided for {label}")
        try:
            result = await self.extract(url)
        except NewsScoutError as exc:
            logger.warning("Scrape failed for %s: %s", label, exc)
            return Failure(str(exc))
        return SinglePage(title=result.title, content=result.content, url=url)
