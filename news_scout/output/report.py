from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Any

from ..core.types import GatherResult

logger = logging.getLogger(__name__)


def render_digest(result: GatherResult, title: str, run_date: str | None = None) -> str:
    """Render gathered articles as a markdown digest grouped by source.

    Articles without a URL are listed without a link. Failed sources are
    listed at the end so readers know what coverage is missing.
    """
    run_date = run_date or datetime.now(timezone.utc).strftime("%Y-%m-%d")

    grouped = defaultdict(list)
    for article in result.articles:
        grouped[article.source or "Unknown"].append(article)

    lines = [f"# {title} - {run_date}", "", f"Total: {len(result.articles)}", ""]
    for group, items in sorted(grouped.items(), key=lambda item: (-len(item[1]), item[0].lower())):
        lines.append(f"## {group}")
        lines.append("")
        for art in items:
            heading = f"[{art.title}]({art.url})" if art.url else art.title
            lines.append(f"### {heading}")
            if art.date:
                lines.append(f"- Date: {art.date}")
            if art.snippet:
                lines.append(f"- {art.snippet}")
            lines.append("")

    if result.errors:
        lines.append("## Unavailable sources")
        lines.append("")
        for error in result.errors:
            lines.append(f"- {error}")
        lines.append("")

    return "\n".join(lines)


def write_report(
    content: str,
    reports_dir: Path,
    filename_prefix: str = "news-digest",
    run_date: str | None = None,
) -> dict[str, Any]:
    """Write a markdown report to ``reports_dir/<prefix>-<date>.md``.

    Returns:
        {"success": True, "path": ..., "filename": ...} on success, or
        {"error": ...} when there is nothing to write or the write fails.
    """
    if not content or not content.strip():
        return {"error": "No content provided for the report"}

    run_date = run_date or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    filename = f"{filename_prefix}-{run_date}.md"
    try:
        reports_dir.mkdir(parents=True, exist_ok=True)
        path = reports_dir / filename
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to write report %s: %s", filename, exc)
        return {"error": f"Failed to write report {filename}: {exc}"}

    return {"success": True, "path": str(path), "filename": filename}
