"""
Source catalog: the ordered list of sources for one run.

The catalog starts from a base list (defaults or a YAML file) and may be
extended by a suggestion collaborator that proposes extra sources in the
payload shape {"type": "feed"|"search"|"scrape", "value": str, "label": str}.
A failing collaborator never stops the run; it just contributes nothing.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

import yaml

from ..config import CatalogConfig
from ..core.errors import MalformedResponseError
from ..core.types import SourceDescriptor, SourceKind

logger = logging.getLogger(__name__)

Suggester = Callable[[], Iterable[dict[str, Any]]]

# "rss" is the type name older source files use for feeds.
_KIND_ALIASES = {"rss": SourceKind.FEED}

DEFAULT_SOURCES: tuple[SourceDescriptor, ...] = (
    SourceDescriptor(
        SourceKind.FEED,
        "https://allgoodscents.com/blogs/all-good-notes.atom",
        "allgoodscents",
    ),
    # Direct scraping of fragrantica returns the homepage, so search it instead.
    SourceDescriptor(SourceKind.SEARCH, "site:fragrantica.com perfume news", "fragrantica"),
    SourceDescriptor(SourceKind.SEARCH, "perfume OR fragrance OR perfumery new launch", "news"),
)


def descriptor_from_payload(payload: Any) -> SourceDescriptor:
    """Build a SourceDescriptor from a {type, value, label} mapping.

    Raises:
        MalformedResponseError: The payload is not a mapping, names an
            unknown type, or has an empty value.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"source entry must be a mapping, got {type(payload).__name__}")

    raw_kind = str(payload.get("type", "")).strip().lower()
    kind = _KIND_ALIASES.get(raw_kind)
    if kind is None:
        try:
            kind = SourceKind(raw_kind)
        except ValueError as exc:
            raise MalformedResponseError(f"unknown source type {raw_kind!r}") from exc

    value = str(payload.get("value") or "").strip()
    if not value:
        raise MalformedResponseError(f"{kind.value} source has no value")
    label = str(payload.get("label") or "").strip() or value
    return SourceDescriptor(kind, value, label)


class SourceCatalog:
    """Ordered, per-run list of SourceDescriptors."""

    def __init__(
        self,
        descriptors: Iterable[SourceDescriptor] = DEFAULT_SOURCES,
        cfg: CatalogConfig | None = None,
    ) -> None:
        self.cfg = cfg or CatalogConfig()
        self._descriptors: list[SourceDescriptor] = list(descriptors)

    @property
    def descriptors(self) -> tuple[SourceDescriptor, ...]:
        return tuple(self._descriptors)

    def __iter__(self):
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def extend_with_suggestions(self, suggester: Suggester | None) -> list[SourceDescriptor]:
        """Append up to max_suggestions suggested sources.

        Suggestions already in the catalog (same kind and locator) are
        skipped when dedupe_suggestions is enabled. Any error raised by the
        suggester yields no additions.

        Returns:
            The descriptors that were appended.
        """
        if suggester is None:
            return []
        try:
            payload = list(suggester())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Source suggestions unavailable: %s", exc)
            return []

        existing = {_identity(d) for d in self._descriptors}
        added: list[SourceDescriptor] = []
        for item in payload[: self.cfg.max_suggestions]:
            try:
                descriptor = descriptor_from_payload(item)
            except MalformedResponseError as exc:
                logger.warning("Skipping malformed source suggestion: %s", exc)
                continue
            if self.cfg.dedupe_suggestions and _identity(descriptor) in existing:
                logger.debug("Skipping duplicate source suggestion %s", descriptor.label)
                continue
            existing.add(_identity(descriptor))
            added.append(descriptor)

        self._descriptors.extend(added)
        if added:
            logger.info("Added %d suggested sources", len(added))
        return added

    @classmethod
    def from_file(cls, path: Path, cfg: CatalogConfig | None = None) -> "SourceCatalog":
        """Load a catalog from a YAML file with a top-level ``sources`` list."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        entries = data.get("sources", []) if isinstance(data, dict) else data
        descriptors = []
        for entry in entries or []:
            try:
                descriptors.append(descriptor_from_payload(entry))
            except MalformedResponseError as exc:
                logger.warning("Skipping invalid source in %s: %s", path, exc)
        return cls(descriptors, cfg)


def file_suggester(path: Path) -> Suggester:
    """Suggestion collaborator backed by a JSON or YAML file of payload entries."""

    def suggest() -> list[dict[str, Any]]:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        if isinstance(data, dict):
            data = data.get("sources", [])
        if not isinstance(data, list):
            raise MalformedResponseError(f"suggestions in {path} must be a list")
        return data

    return suggest


def _identity(descriptor: SourceDescriptor) -> tuple[SourceKind, str]:
    return descriptor.kind, descriptor.locator.strip().lower()
