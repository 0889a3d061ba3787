"""
Error taxonomy for the acquisition pipeline.

Only RunFatalError is allowed to escape a run. Every other error is caught at
the component that raised it and converted into a Failure outcome or an
entry in GatherResult.errors.
"""

from __future__ import annotations


class NewsScoutError(Exception):
    """Base class for all News Scout errors."""


class SourceFetchError(NewsScoutError):
    """A feed or search fetch failed (timeout, transport, parse, API status)."""


class ExtractionError(NewsScoutError):
    """One extraction tier failed to produce sufficient content."""


class ScrapeExhaustedError(ExtractionError):
    """Every applicable extraction tier failed for a URL.

    Attributes:
        url: The page that could not be extracted
        causes: (tier name, reason) pairs in the order the tiers ran
    """

    def __init__(self, url: str, causes: list[tuple[str, str]]) -> None:
        self.url = url
        self.causes = list(causes)
        summary = "; ".join(f"{name}: {reason}" for name, reason in self.causes)
        super().__init__(f"All extraction tiers failed for {url} ({summary or 'no tiers applicable'})")


class ConfigError(NewsScoutError):
    """A required credential or setting is missing and there is no fallback."""


class MalformedResponseError(NewsScoutError):
    """A remote response could not be parsed into the expected shape."""


class RunFatalError(NewsScoutError):
    """The run cannot produce a report (no articles, or the report write failed)."""
