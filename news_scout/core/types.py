"""
Core data types for News Scout.

This module defines the records that flow through the acquisition pipeline:
- SourceDescriptor: Where to pull candidate articles from, and how to label them
- Article: The uniform record every fetcher normalizes into
- ExtractionResult: Readable content pulled from a single page
- FetchOutcome: Items | SinglePage | Failure, the result of one source fetch
- GatherResult: The pipeline's terminal output
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Union


SNIPPET_MAX_CHARS = 250
UNTITLED = "Untitled"


class SourceKind(str, Enum):
    """Which fetcher handles a source."""

    FEED = "feed"
    SEARCH = "search"
    SCRAPE = "scrape"


@dataclass(frozen=True)
class SourceDescriptor:
    """Declarative record naming a source.

    Attributes:
        kind: Fetcher that handles this source
        locator: Feed URL or alias, search query, or page URL
        label: Human-readable name used in errors and as a title fallback
    """

    kind: SourceKind
    locator: str
    label: str


@dataclass
class Article:
    """A normalized candidate news item.

    Attributes:
        title: Headline, never empty ("Untitled" when the source had none)
        url: Link to the item, empty when the source gave none
        source: Publication or feed name
        date: ISO-ish timestamp string, may be empty
        snippet: Short excerpt, at most 250 characters
    """

    title: str
    url: str = ""
    source: str = ""
    date: str = ""
    snippet: str = ""

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            self.title = UNTITLED
        self.snippet = truncate_snippet(self.snippet)


@dataclass
class ExtractionResult:
    """Readable content extracted from one page."""

    title: str = ""
    content: str = ""


@dataclass(frozen=True)
class Items:
    """A fetch that produced zero or more articles."""

    articles: list[Article] = field(default_factory=list)


@dataclass(frozen=True)
class SinglePage:
    """A fetch that produced one page of extracted content."""

    title: str
    content: str
    url: str


@dataclass(frozen=True)
class Failure:
    """A fetch that failed; carries a human-readable reason."""

    reason: str


FetchOutcome = Union[Items, SinglePage, Failure]


@dataclass
class GatherResult:
    """Merged output of one pipeline run."""

    articles: list[Article] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "articles": [asdict(article) for article in self.articles],
            "errors": list(self.errors),
        }


def truncate_snippet(text: str | None, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    """Trim and cap a snippet. Never pads or expands the input."""
    if not text:
        return ""
    return text.strip()[:max_chars].strip()
