"""
Source fetching and page extraction.

This package holds the feed and search fetchers, the HTML extractor chain,
the shared headless browser, and the tiered scrape escalator.
"""

from .browser import SharedBrowser
from .escalator import ExtractionTier, ScrapeEscalator, first_success
from .extractor import extract_page, extract_text, extract_title
from .feeds import FeedFetcher
from .search import SearchFetcher, split_title

__all__ = [
    "FeedFetcher",
    "SearchFetcher",
    "split_title",
    "ScrapeEscalator",
    "ExtractionTier",
    "first_success",
    "SharedBrowser",
    "extract_page",
    "extract_text",
    "extract_title",
]
