"""
HTML content extraction with named, chainable strategies.

This module provides a chain of extraction methods:
1. selectors: content-container heuristics over BeautifulSoup (default)
2. trafilatura: purpose-built article extraction
3. readability: Mozilla's readability algorithm

The selectors heuristic strips navigation and ad noise, then takes the text
of the first matching content container, falling back to the whole document.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document

from ..core.types import ExtractionResult

logger = logging.getLogger(__name__)

NOISE_SELECTORS = "script, style, nav, header, footer, aside, iframe, .ad, .sidebar"
CONTENT_SELECTORS = ["article", ".post-content", ".entry-content", ".article-body", "main"]

_WHITESPACE_RE = re.compile(r"\s+")


def extract_page(
    html: str,
    max_chars: int,
    primary: str = "selectors",
    fallback: list[str] | None = None,
) -> ExtractionResult:
    """Extract title and capped readable content from an HTML document.

    An empty or unreadable document yields empty content rather than an
    error; callers decide whether the length is sufficient.

    Args:
        html: The HTML content to extract from
        max_chars: Content cap in characters
        primary: Name of the primary extraction method
        fallback: Extraction methods to try if the primary yields nothing

    Returns:
        ExtractionResult with the page title and collapsed, capped content
    """
    text = extract_text(html, primary, fallback or [])
    return ExtractionResult(
        title=extract_title(html),
        content=collapse_whitespace(text or "")[:max_chars],
    )


def extract_text(html: str, primary: str, fallback: list[str]) -> str | None:
    """Extract plain text from HTML using a chain of extractors.

    Tries each extraction method in order until one produces non-empty
    output. Unknown method names are skipped, and a method that raises on
    the document counts as producing nothing.

    Examples:
        >>> extract_text("<main>Hello</main>", "selectors", [])
        'Hello'
    """
    order = [primary] + [name for name in fallback if name != primary]
    for method in order:
        extractor = _get_extractor(method)
        if not extractor:
            continue
        try:
            text = extractor(html)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Extractor %s failed: %s: %s", method, type(exc).__name__, exc)
            continue
        if text:
            return text.strip()
    return None


def extract_title(html: str) -> str:
    """Return the <title> text, else the first <h1>, else an empty string."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is not None:
        title = collapse_whitespace(soup.title.get_text())
        if title:
            return title
    heading = soup.find("h1")
    if heading is not None:
        return collapse_whitespace(heading.get_text())
    return ""


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def html_to_text(fragment: str) -> str:
    """Flatten an HTML fragment (e.g. a feed summary) to single-spaced text."""
    if not fragment:
        return ""
    if "<" not in fragment:
        return collapse_whitespace(fragment)
    soup = BeautifulSoup(fragment, "html.parser")
    return collapse_whitespace(soup.get_text(separator=" "))


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    if name == "selectors":
        return _extract_selectors
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "readability":
        return _extract_readability
    return None


def _extract_selectors(html: str) -> str | None:
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.select(NOISE_SELECTORS):
        tag.decompose()

    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None:
            text = collapse_whitespace(element.get_text(separator=" "))
            if text:
                return text
            break

    root = soup.body or soup
    return collapse_whitespace(root.get_text(separator=" "))


def _extract_trafilatura(html: str) -> str | None:
    return trafilatura.extract(html)


def _extract_readability(html: str) -> str | None:
    doc = Document(html)
    return _extract_selectors(doc.summary())
