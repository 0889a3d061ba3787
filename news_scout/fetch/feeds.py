"""Syndication feed fetcher."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

import feedparser
import httpx

from ..config import FeedConfig
from ..core.errors import MalformedResponseError, SourceFetchError
from ..core.types import UNTITLED, Article, Failure, FetchOutcome, Items, truncate_snippet
from .extractor import html_to_text

logger = logging.getLogger(__name__)


class FeedFetcher:
    """Fetch a syndication feed and map its entries to Articles."""

    def __init__(self, cfg: FeedConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cfg = cfg
        self.transport = transport

    def resolve(self, locator: str) -> tuple[str, str]:
        """Resolve a locator to (feed url, source name).

        Known aliases map to their URL and keep the alias as the source name;
        anything else is used as the URL and names itself.
        """
        key = locator.strip().lower()
        if key in self.cfg.known_feeds:
            return self.cfg.known_feeds[key], key
        return locator.strip(), locator.strip()

    async def fetch(self, locator: str, label: str) -> FetchOutcome:
        url, source_name = self.resolve(locator)
        if not url:
            return Failure(
                f"No feed specified for {label}. Available feeds: {', '.join(sorted(self.cfg.known_feeds))}"
            )

        try:
            entries = await self._download_and_parse(url)
            articles = [
                entry_to_article(entry, source_name)
                for entry in entries[: self.cfg.max_items]
            ]
        except (SourceFetchError, MalformedResponseError) as exc:
            logger.warning("Feed fetch failed for %s: %s", label, exc)
            return Failure(f"Failed to fetch {label} ({url}): {exc}")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Unexpected feed error for %s: %s", label, exc)
            return Failure(f"Failed to fetch {label} ({url}): {type(exc).__name__}: {exc}")

        logger.debug("Feed %s returned %d items", label, len(articles))
        return Items(articles)

    async def _download_and_parse(self, url: str) -> list[Any]:
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


def parse_feed(content: bytes | str) -> list[Any]:
    """Parse feed bytes with feedparser and return the usable entries.

    feedparser is lenient: a feed with recoverable problems still yields
    entries and is accepted. Entries with neither a title nor a link are
    dropped. A document feedparser does not recognize as a feed, or a
    malformed one with no usable entries, is a parse failure.

    Raises:
        MalformedResponseError: The content is not a readable feed.
    """
    parsed = feedparser.parse(content)
    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "no RSS or Atom root element"
        raise MalformedResponseError(f"Not a feed: {reason}")

    entries = [entry for entry in parsed.entries if entry.get("title") or entry.get("link")]
    if parsed.bozo and not entries:
        raise MalformedResponseError(f"Invalid feed: {parsed.get('bozo_exception')}")
    return entries


def entry_to_article(entry: Any, source: str, default_date: str | None = None) -> Article:
    """Map a feedparser entry to an Article.

    The date is the entry's raw publish or update timestamp; without one it
    is the current UTC time unless default_date is given.
    """
    title = (entry.get("title") or "").strip() or UNTITLED
    date = entry.get("published") or entry.get("updated")
    if not date:
        date = default_date if default_date is not None else datetime.now(timezone.utc).isoformat()
    return Article(
        title=title,
        url=entry.get("link") or "",
        source=source,
        date=date,
        snippet=truncate_snippet(html_to_text(entry_summary(entry))),
    )


def entry_summary(entry: Any) -> str:
    summary = entry.get("summary")
    if summary:
        return summary
    content = entry.get("content") or []
    if content:
        return content[0].get("value", "")
    return ""
