"""
Search-based source fetching.

Two strategies, selected by credential availability:
1. Search API (NewsAPI "everything"), windowed to the lookback period and
   sorted by recency. Used when an API key is configured.
2. Feed-based fallback (Google News RSS search). Titles there follow the
   "<title> - <source>" convention and are split on the last delimiter.

Both return FetchOutcome values and never raise.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any
from urllib.parse import quote_plus

import httpx

from ..config import SearchConfig, get_search_api_key
from ..core.errors import MalformedResponseError, SourceFetchError
from ..core.types import UNTITLED, Article, Failure, FetchOutcome, Items, truncate_snippet
from .extractor import html_to_text
from .feeds import entry_summary, parse_feed

logger = logging.getLogger(__name__)


class SearchFetcher:
    """Resolve a query into Articles through a search API or its fallback."""

    def __init__(
        self,
        cfg: SearchConfig,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cfg = cfg
        self.api_key = api_key if api_key is not None else get_search_api_key(cfg)
        self.transport = transport

    @property
    def strategy(self) -> str:
        return "api" if self.api_key else "fallback"

    async def fetch(self, locator: str, label: str) -> FetchOutcome:
        return await self.search(locator, self.cfg.lookback_days)

    async def search(self, query: str, lookback_days: int) -> FetchOutcome:
        query = query.strip() or self.cfg.default_query
        try:
            if self.api_key:
                return await self._search_api(query, lookback_days)
            logger.info("No search API key set, using feed-based search fallback")
            return await self._search_fallback(query)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Unexpected search error for %r: %s", query, exc)
            return Failure(f"Search failed for {query!r}: {type(exc).__name__}: {exc}")

    async def _search_api(self, query: str, lookback_days: int) -> FetchOutcome:
        now = datetime.now(timezone.utc)
        params = {
            "q": query,
            "from": (now - timedelta(days=lookback_days)).strftime("%Y-%m-%dT%H:%M:%S"),
            "to": now.strftime("%Y-%m-%dT%H:%M:%S"),
            "sortBy": "publishedAt",
            "language": self.cfg.language,
            "pageSize": str(self.cfg.max_results),
        }
        headers = {"X-Api-Key": self.api_key or "", "User-Agent": self.cfg.user_agent}

        try:
            async with httpx.AsyncClient(
                timeout=self.cfg.timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.get(self.cfg.api_url, params=params, headers=headers)
            data = _parse_api_payload(response)
        except httpx.TimeoutException:
            return Failure(f"Search API request timed out after {self.cfg.timeout_seconds}s")
        except httpx.HTTPError as exc:
            return Failure(f"Search API request failed: {type(exc).__name__}: {exc}")
        except MalformedResponseError as exc:
            return Failure(f"Search API returned a malformed response: {exc}")

        if data.get("status") != "ok":
            # The API reports its own failures (rate limits, bad keys) in the body.
            return Failure(f"Search API error: {data.get('message') or 'search API returned an error'}")

        raw_articles = data.get("articles") or []
        articles = [
            _api_item_to_article(item)
            for item in raw_articles[: self.cfg.max_results]
            if isinstance(item, dict)
        ]
        return Items(articles)

    async def _search_fallback(self, query: str) -> FetchOutcome:
        url = self.cfg.fallback_url.format(query=quote_plus(query))
        try:
            entries = await self._download_feed(url)
        except (SourceFetchError, MalformedResponseError) as exc:
            return Failure(f"Feed-based search failed for {query!r}: {exc}")

        articles = [
            self._fallback_entry_to_article(entry)
            for entry in entries[: self.cfg.max_results]
        ]
        return Items(articles)

    async def _download_feed(self, url: str) -> list[Any]:
        headers = {"User-Agent": self.cfg.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self.cfg.timeout_seconds,
                headers=headers,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SourceFetchError(f"timed out after {self.cfg.timeout_seconds}s") from exc
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise SourceFetchError(f"{type(exc).__name__}: {exc}") from exc
        return parse_feed(response.content)

    def _fallback_entry_to_article(self, entry: Any) -> Article:
        raw_title = (entry.get("title") or "").strip() or UNTITLED
        title, source = split_title(raw_title, self.cfg.title_delimiter)
        return Article(
            title=title,
            url=entry.get("link") or "",
            source=source or entry.get("author") or self.cfg.fallback_source,
            date=entry.get("published") or entry.get("updated") or "",
            snippet=truncate_snippet(html_to_text(entry_summary(entry))),
        )


def split_title(raw_title: str, delimiter: str = " - ") -> tuple[str, str | None]:
    """Split "<title> - <source>" on the last delimiter.

    Returns (title, source). Without a delimiter (or with one only at the
    very start) the whole string is the title and source is None.

    Examples:
        >>> split_title("Dior - Sauvage returns - Vogue")
        ('Dior - Sauvage returns', 'Vogue')
    """
    index = raw_title.rfind(delimiter)
    if index <= 0:
        return raw_title, None
    title = raw_title[:index].strip() or UNTITLED
    source = raw_title[index + len(delimiter):].strip()
    return title, source or None


def _parse_api_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise MalformedResponseError(f"HTTP {response.status_code}, body is not JSON") from exc
    if not isinstance(data, dict):
        raise MalformedResponseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _api_item_to_article(item: dict[str, Any]) -> Article:
    source = item.get("source") or {}
    return Article(
        title=(item.get("title") or "").strip() or UNTITLED,
        url=item.get("url") or "",
        source=(source.get("name") if isinstance(source, dict) else None) or "NewsAPI",
        date=item.get("publishedAt") or "",
        snippet=truncate_snippet(item.get("description")),
    )
