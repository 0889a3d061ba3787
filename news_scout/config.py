"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FeedConfig: Syndication feed fetching
- SearchConfig: Search API and feed-based fallback
- ScrapeConfig: Tiered scrape escalation (timeouts, caps, thresholds, denylist)
- ExtractConfig: HTML extractor chain
- DedupConfig: Fingerprint deduplication
- CatalogConfig: Source catalog and suggestion handling
- PipelineConfig: Per-source deadlines
- ReportConfig: Report output
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
import os
from typing import Any

import yaml


DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FeedConfig:
    """Configuration for syndication feed fetching.

    Attributes:
        timeout_seconds: Download timeout for one feed
        max_items: Maximum entries mapped per feed
        user_agent: HTTP User-Agent header string
        known_feeds: Alias -> feed URL map; aliases may be used as feed locators
    """

    timeout_seconds: float = 10.0
    max_items: int = 15
    user_agent: str = "NewsScout/1.0"
    known_feeds: dict[str, str] = field(
        default_factory=lambda: {
            "fragrantica": "https://www.fragrantica.com/news/rss",
            "basenotes": "https://basenotes.com/feed/",
            "cafleurebon": "https://www.cafleurebon.com/feed/",
            "perfumesociety": "https://perfumesociety.org/feed/",
        }
    )


@dataclass
class SearchConfig:
    """Configuration for search-based sources.

    Attributes:
        api_url: Search API endpoint (NewsAPI "everything")
        api_key: Optional inline API key (overrides env var)
        api_key_env: Environment variable holding the search API key
        language: Result language filter sent to the API
        max_results: Result cap for both strategies
        lookback_days: Default search window in days
        default_query: Query used when a search source has an empty locator
        timeout_seconds: Request timeout for both strategies
        fallback_url: Feed-based search aggregator URL template ({query} is URL-encoded)
        fallback_source: Source name when a fallback title carries none
        title_delimiter: Separator between title and source in fallback titles
        user_agent: HTTP User-Agent header string
    """

    api_url: str = "https://newsapi.org/v2/everything"
    api_key: str | None = None
    api_key_env: str = "NEWSAPI_KEY"
    language: str = "en"
    max_results: int = 20
    lookback_days: int = 7
    default_query: str = "perfume OR fragrance OR perfumery OR cologne"
    timeout_seconds: float = 15.0
    fallback_url: str = "https://news.google.com/rss/search?q={query}&hl=en-US&gl=US&ceid=US:en"
    fallback_source: str = "Google News"
    title_delimiter: str = " - "
    user_agent: str = DEFAULT_BROWSER_USER_AGENT


@dataclass
class ScrapeConfig:
    """Configuration for the tiered scrape escalator.

    Attributes:
        user_agent: User-Agent for plain retrieval and browser contexts
        http_timeout_seconds: Tier 1 request timeout
        http_max_chars: Tier 1 content cap
        http_min_chars: Tier 1 content below this length escalates
        browser_timeout_seconds: Tier 2 navigation timeout
        browser_settle_seconds: Delay after DOM-ready for client-side rendering
        browser_max_chars: Tier 2 content cap
        browser_min_chars: Tier 2 content below this length escalates
        managed_api_url: Tier 3 managed extraction endpoint
        managed_api_key: Optional inline Tier 3 key (overrides env var)
        managed_api_key_env: Environment variable holding the Tier 3 key
        managed_timeout_seconds: Tier 3 request timeout
        managed_max_chars: Tier 3 content cap
        managed_min_chars: Tier 3 content below this length fails
        protected_domains: Hosts with strong bot defenses; go straight to Tier 3
    """

    user_agent: str = DEFAULT_BROWSER_USER_AGENT
    http_timeout_seconds: float = 10.0
    http_max_chars: int = 2000
    http_min_chars: int = 100
    browser_timeout_seconds: float = 20.0
    browser_settle_seconds: float = 2.0
    browser_max_chars: int = 3000
    browser_min_chars: int = 100
    managed_api_url: str = "https://api.firecrawl.dev/v1/scrape"
    managed_api_key: str | None = None
    managed_api_key_env: str = "FIRECRAWL_API_KEY"
    managed_timeout_seconds: float = 60.0
    managed_max_chars: int = 5000
    managed_min_chars: int = 50
    protected_domains: list[str] = field(
        default_factory=lambda: [
            "fragrantica.com",
            "bloomberg.com",
            "wsj.com",
            "ft.com",
            "nytimes.com",
            "reuters.com",
        ]
    )


@dataclass
class ExtractConfig:
    """Configuration for HTML content extraction.

    Attributes:
        primary: Primary extraction method ("selectors", "trafilatura", or "readability")
        fallback: Methods to try, in order, when the primary yields nothing
    """

    primary: str = "selectors"
    fallback: list[str] = field(default_factory=list)


@dataclass
class DedupConfig:
    """Configuration for article deduplication.

    Attributes:
        enabled: Whether to perform deduplication
        title_similarity_threshold: Optional fuzzy threshold (0-100) on fingerprints
    """

    enabled: bool = True
    title_similarity_threshold: int | None = None


@dataclass
class CatalogConfig:
    """Configuration for the source catalog.

    Attributes:
        max_suggestions: Cap on suggested sources appended per run
        dedupe_suggestions: Skip suggestions already present in the catalog
    """

    max_suggestions: int = 5
    dedupe_suggestions: bool = True


@dataclass
class PipelineConfig:
    """Per-source deadlines enforced by the aggregation pipeline.

    Attributes:
        feed_deadline_seconds: Upper bound for one feed fetch
        search_deadline_seconds: Upper bound for one search fetch
        scrape_deadline_seconds: Upper bound for one full scrape escalation
    """

    feed_deadline_seconds: float = 20.0
    search_deadline_seconds: float = 20.0
    scrape_deadline_seconds: float = 120.0


@dataclass
class ReportConfig:
    """Configuration for report output.

    Attributes:
        reports_dir: Directory (relative to the output dir) for markdown reports
        filename_prefix: Report filename prefix, followed by the run date
        title: Report heading
        write_json: Whether to also write gather.json
    """

    reports_dir: str = "reports"
    filename_prefix: str = "news-digest"
    title: str = "News Digest"
    write_json: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    scrape: ScrapeConfig = field(default_factory=ScrapeConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections and unknown keys inside a section are ignored.
    """
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            section_keys = {f.name for f in fields(getattr(base, key))}
            data[key].update({k: v for k, v in value.items() if k in section_keys})
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        feed=FeedConfig(**data["feed"]),
        search=SearchConfig(**data["search"]),
        scrape=ScrapeConfig(**data["scrape"]),
        extract=ExtractConfig(**data["extract"]),
        dedup=DedupConfig(**data["dedup"]),
        catalog=CatalogConfig(**data["catalog"]),
        pipeline=PipelineConfig(**data["pipeline"]),
        report=ReportConfig(**data["report"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_search_api_key(cfg: SearchConfig) -> str | None:
    """Get the search API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.api_key_env) or None


def get_extraction_api_key(cfg: ScrapeConfig) -> str | None:
    """Get the managed extraction key from inline config or environment variable."""
    if cfg.managed_api_key:
        return cfg.managed_api_key
    return os.getenv(cfg.managed_api_key_env) or None
