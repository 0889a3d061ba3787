"""
Core domain models and business logic.

This package contains data types, the error taxonomy and deduplication,
independent of any specific fetcher.
"""

from .dedup import dedupe, fingerprint
from .errors import (
    ConfigError,
    ExtractionError,
    MalformedResponseError,
    NewsScoutError,
    RunFatalError,
    ScrapeExhaustedError,
    SourceFetchError,
)
from .types import (
    Article,
    ExtractionResult,
    Failure,
    FetchOutcome,
    GatherResult,
    Items,
    SinglePage,
    SourceDescriptor,
    SourceKind,
)

__all__ = [
    "Article",
    "ExtractionResult",
    "Failure",
    "FetchOutcome",
    "GatherResult",
    "Items",
    "SinglePage",
    "SourceDescriptor",
    "SourceKind",
    "dedupe",
    "fingerprint",
    "NewsScoutError",
    "SourceFetchError",
    "ExtractionError",
    "ScrapeExhaustedError",
    "ConfigError",
    "MalformedResponseError",
    "RunFatalError",
]
