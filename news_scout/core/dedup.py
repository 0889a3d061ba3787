"""
Article deduplication by title fingerprint.

A fingerprint is the title lowercased, stripped of everything except ASCII
letters and digits, and cut to 60 characters. The first article seen for a
fingerprint is kept and later ones are dropped, so the result depends on
input order. Callers that want most-recent-wins must sort before calling.

An optional fuzzy pass (rapidfuzz) also drops articles whose fingerprint is
near-identical to one already kept.
"""

from __future__ import annotations

import re

from rapidfuzz import fuzz

from .types import Article

FINGERPRINT_MAX_CHARS = 60

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def fingerprint(title: str) -> str:
    """Return the normalized fingerprint of a title.

    Examples:
        >>> fingerprint("Chanel No. 5!!")
        'chanelno5'
    """
    return _NON_ALNUM_RE.sub("", title.lower())[:FINGERPRINT_MAX_CHARS]


def dedupe(articles: list[Article], similarity_threshold: int | None = None) -> list[Article]:
    """Remove articles whose title fingerprint was already seen.

    Args:
        articles: Articles in priority order; earlier entries win
        similarity_threshold: Optional rapidfuzz ratio (0-100). When set,
            fingerprints at least this similar to a kept one are also dropped.

    Returns:
        A new list holding the kept articles in their original order.
        The input articles are not modified.
    """
    seen: set[str] = set()
    kept_prints: list[str] = []
    kept: list[Article] = []

    for article in articles:
        key = fingerprint(article.title)
        if key in seen:
            continue
        if similarity_threshold is not None and _is_similar(key, kept_prints, similarity_threshold):
            continue
        seen.add(key)
        kept_prints.append(key)
        kept.append(article)

    return kept


def _is_similar(key: str, kept_prints: list[str], threshold: int) -> bool:
    for existing in kept_prints:
        if fuzz.ratio(key, existing) >= threshold:
            return True
    return False
