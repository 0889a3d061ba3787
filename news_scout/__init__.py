"""
News Scout - resilient news acquisition.

This package gathers candidate news items from syndication feeds, search
queries and single-page scrapes, normalizes them into Articles, and removes
duplicates. Pages that resist plain retrieval are escalated through a
headless browser and a managed scraping service.

Main entry point is the CLI via `news-scout gather` command.

Example:
    $ news-scout gather -o out/ --sources sources.yaml
"""

__all__ = [
    "__version__",
    "AggregationPipeline",
    "Article",
    "GatherResult",
    "SourceCatalog",
    "SourceDescriptor",
    "SourceKind",
    "dedupe",
    "fingerprint",
]
__version__ = "0.1.0"

from .core.dedup import dedupe, fingerprint
from .core.types import Article, GatherResult, SourceDescriptor, SourceKind
from .pipeline import AggregationPipeline
from .sources.catalog import SourceCatalog
