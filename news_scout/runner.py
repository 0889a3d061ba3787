"""
Main pipeline orchestration for News Scout.

This module coordinates one run:
1. Build the source catalog (base list + optional suggestions)
2. Gather every source concurrently (feeds, search, tiered scrapes)
3. Deduplicate articles by title fingerprint
4. Write gather.json and a markdown digest report

Exactly two conditions stop a run: no articles at all, and a failed report
write. Both raise RunFatalError. Everything else is reported in the
GatherResult errors list.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
from rich.console import Console

from .config import AppConfig
from .core.dedup import dedupe
from .core.errors import RunFatalError
from .core.types import GatherResult, SourceDescriptor
from .fetch.browser import SharedBrowser
from .fetch.escalator import ScrapeEscalator
from .fetch.feeds import FeedFetcher
from .fetch.search import SearchFetcher
from .output.report import render_digest, write_report
from .pipeline import AggregationPipeline
from .sources.catalog import SourceCatalog, Suggester
from .utils.logging import close_logging, log_event, setup_logging


def build_pipeline(
    cfg: AppConfig,
    browser: SharedBrowser | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AggregationPipeline:
    """Wire the fetchers for every source kind into a pipeline."""
    return AggregationPipeline(
        feeds=FeedFetcher(cfg.feed, transport=transport),
        search=SearchFetcher(cfg.search, transport=transport),
        scraper=ScrapeEscalator(cfg.scrape, cfg.extract, browser=browser, transport=transport),
        cfg=cfg.pipeline,
    )


async def collect(
    sources: list[SourceDescriptor],
    cfg: AppConfig,
    browser: SharedBrowser | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GatherResult:
    """Gather all sources and deduplicate the merged articles.

    A browser is created for the duration of the call when none is given,
    and released before returning.
    """
    owned = browser is None
    if owned:
        browser = SharedBrowser(user_agent=cfg.scrape.user_agent)
    try:
        result = await build_pipeline(cfg, browser, transport).gather(sources)
    finally:
        if owned:
            await browser.close()

    if cfg.dedup.enabled:
        result.articles = dedupe(result.articles, cfg.dedup.title_similarity_threshold)
    return result


def run_pipeline(
    output_dir: Path,
    cfg: AppConfig,
    catalog: SourceCatalog | None = None,
    suggester: Suggester | None = None,
    console: Console | None = None,
) -> Path:
    """Run a full gather and write the report.

    Returns:
        Path to the written markdown report

    Raises:
        RunFatalError: No articles were gathered, or the report could not be written
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    logger = setup_logging(cfg.logging, output_dir)
    try:
        catalog = catalog or SourceCatalog(cfg=cfg.catalog)
        catalog.extend_with_suggestions(suggester)
        sources = list(catalog)
        log_event(logger, f"Gathering from {len(sources)} sources", event="run_start", sources=len(sources))

        if console is not None:
            with console.status(f"Gathering from {len(sources)} sources..."):
                result = asyncio.run(collect(sources, cfg))
        else:
            result = asyncio.run(collect(sources, cfg))

        for error in result.errors:
            log_event(logger, f"Source failed: {error}", event="source_failed", error=error)

        if cfg.report.write_json:
            json_path = output_dir / "gather.json"
            json_path.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

        if not result.articles:
            raise RunFatalError(
                f"No articles gathered from {len(sources)} sources ({len(result.errors)} failed)"
            )

        report = render_digest(result, cfg.report.title)
        written = write_report(report, output_dir / cfg.report.reports_dir, cfg.report.filename_prefix)
        if "error" in written:
            raise RunFatalError(written["error"])

        log_event(
            logger,
            f"Report written: {written['path']}",
            event="report_written",
            path=written["path"],
            articles=len(result.articles),
        )
        return Path(written["path"])
    finally:
        close_logging(logger)
