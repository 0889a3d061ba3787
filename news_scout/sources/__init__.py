"""Source catalog and suggestion handling."""

from .catalog import DEFAULT_SOURCES, SourceCatalog, descriptor_from_payload, file_suggester

__all__ = ["DEFAULT_SOURCES", "SourceCatalog", "descriptor_from_payload", "file_suggester"]
