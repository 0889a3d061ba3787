"""Report rendering and writing."""

from .report import render_digest, write_report

__all__ = ["render_digest", "write_report"]
