"""
Concurrent aggregation over a source catalog.

Every source is fetched concurrently under its own deadline. A failing,
slow or crashing source never prevents collection of the others: each
dispatch converts any exception into a Failure, and the join waits for all
of them. Failures become labeled strings in GatherResult.errors; successes
contribute Articles in source order.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from typing import Protocol

from .config import PipelineConfig
from .core.types import (
    Article,
    Failure,
    FetchOutcome,
    GatherResult,
    Items,
    SinglePage,
    SourceDescriptor,
    SourceKind,
    truncate_snippet,
)
from .utils.logging import log_event

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, locator: str, label: str) -> FetchOutcome: ...


class AggregationPipeline:
    """Dispatch one fetch per source and merge the outcomes.

    Args:
        feeds: Fetcher for feed sources
        search: Fetcher for search sources
        scraper: Fetcher for single-page scrape sources
        cfg: Per-kind deadlines
    """

    def __init__(
        self,
        feeds: Fetcher,
        search: Fetcher,
        scraper: Fetcher,
        cfg: PipelineConfig | None = None,
    ) -> None:
        self.cfg = cfg or PipelineConfig()
        self._fetchers: dict[SourceKind, Fetcher] = {
            SourceKind.FEED: feeds,
            SourceKind.SEARCH: search,
            SourceKind.SCRAPE: scraper,
        }

    async def gather(self, sources: list[SourceDescriptor]) -> GatherResult:
        outcomes = await asyncio.gather(*(self._dispatch(source) for source in sources))

        result = GatherResult()
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, Failure):
                result.errors.append(f"[{source.label}] {outcome.reason}")
            else:
                result.articles.extend(outcome_to_articles(outcome, source))

        log_event(
            logger,
            f"Gathered {len(result.articles)} articles from {len(sources)} sources "
            f"({len(result.errors)} failed)",
            event="gather_complete",
            sources=len(sources),
            articles=len(result.articles),
            failures=len(result.errors),
        )
        return result

    def gather_sync(self, sources: list[SourceDescriptor]) -> GatherResult:
        """Synchronous wrapper for gather."""
        return asyncio.run(self.gather(sources))

    async def _dispatch(self, source: SourceDescriptor) -> FetchOutcome:
        fetcher = self._fetchers[source.kind]
        deadline = self._deadline_for(source.kind)
        try:
            return await asyncio.wait_for(fetcher.fetch(source.locator, source.label), timeout=deadline)
        except asyncio.TimeoutError:
            return Failure(f"{source.kind.value} fetch exceeded {deadline}s deadline")
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unhandled error fetching %s", source.label)
            return Failure(f"{type(exc).__name__}: {exc}")

    def _deadline_for(self, kind: SourceKind) -> float:
        if kind is SourceKind.FEED:
            return self.cfg.feed_deadline_seconds
        if kind is SourceKind.SEARCH:
            return self.cfg.search_deadline_seconds
        return self.cfg.scrape_deadline_seconds


def outcome_to_articles(outcome: FetchOutcome, source: SourceDescriptor) -> list[Article]:
    """Convert a successful outcome into Articles for the merged list."""
    if isinstance(outcome, Items):
        return list(outcome.articles)
    if isinstance(outcome, SinglePage):
        return [
            Article(
                title=outcome.title.strip() or source.label,
                url=outcome.url,
                source=source.label,
                date=datetime.now(timezone.utc).isoformat(),
                snippet=truncate_snippet(outcome.content),
            )
        ]
    return []
