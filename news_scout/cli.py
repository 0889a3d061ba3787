"""
Command-line interface for News Scout.

Uses Typer to provide a CLI with options for the main configuration
settings. Supports loading .env files for API key configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig, get_extraction_api_key, get_search_api_key, load_config
from .core.errors import RunFatalError
from .runner import run_pipeline
from .sources.catalog import SourceCatalog, file_suggester

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


def _load(config: Path | None, sources: Path | None) -> tuple[AppConfig, SourceCatalog]:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if sources is not None:
        catalog = SourceCatalog.from_file(sources, cfg.catalog)
    else:
        catalog = SourceCatalog(cfg=cfg.catalog)
    return cfg, catalog


@app.command()
def gather(
    output: Path = typer.Option(Path("out"), "--output", "-o", help="Output directory."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    sources: Path | None = typer.Option(
        None, "--sources", "-s", exists=True, readable=True, help="YAML file with a sources list."
    ),
    suggestions: Path | None = typer.Option(
        None, "--suggestions", exists=True, readable=True, help="JSON/YAML file of suggested sources."
    ),
    lookback_days: int | None = typer.Option(None, "--lookback-days", help="Search window in days."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    json_only: bool = typer.Option(False, "--json-only", help="Print gather.json path instead of the report path."),
):
    """Gather news from every source and write a digest report.

    Fetches all catalog sources concurrently, escalates hard-to-scrape
    pages through the extraction tiers, deduplicates the results, and
    writes gather.json plus a markdown report into the output directory.
    """
    cfg, catalog = _load(config, sources)

    if lookback_days is not None:
        cfg.search.lookback_days = lookback_days
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file
    if json_only:
        cfg.report.write_json = True

    suggester = file_suggester(suggestions) if suggestions is not None else None

    try:
        report_path = run_pipeline(output, cfg, catalog=catalog, suggester=suggester, console=console)
    except RunFatalError as exc:
        console.print(f"[red]Run failed:[/red] {exc}")
        raise typer.Exit(code=1)

    if json_only:
        console.print(str(output / "gather.json"))
    else:
        console.print(f"Report generated: {report_path}")


@app.command("sources")
def list_sources(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    sources: Path | None = typer.Option(None, "--sources", "-s", exists=True, readable=True),
):
    """Show the effective source catalog and which credentials are available."""
    cfg, catalog = _load(config, sources)

    table = Table(title="Sources")
    table.add_column("Type", style="cyan")
    table.add_column("Label", style="bold")
    table.add_column("Locator")
    for descriptor in catalog:
        table.add_row(descriptor.kind.value, descriptor.label, descriptor.locator)
    console.print(table)

    search_mode = "search API" if get_search_api_key(cfg.search) else "feed-based fallback"
    managed = "available" if get_extraction_api_key(cfg.scrape) else "missing key"
    console.print(f"Search: {search_mode}; managed extraction: {managed}")


if __name__ == "__main__":
    app()
