"""pagescope CLI — entry-point for one-off scrapes and the API server.

Usage:
    python cli/main.py --help

Commands:
    scrape    → run the full pipeline once and print the result
    validate  → check a URL against the admission rules only
    serve     → start the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from pagescope.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from pagescope.config import settings
from pagescope.logging_config import configure_logging
from pagescope.scraper import ScrapeError, ScrapePipeline, validate_url

app = typer.Typer(
    name="pagescope",
    help="pagescope CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging verbosity."),
) -> None:
    configure_logging(log_level, stream=sys.stderr)


# ---------------------------------------------------------------------------
# Scrape commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape."),
    as_json: bool = typer.Option(False, "--json", help="Print the full JSON document."),
) -> None:
    """Scrape a URL and print a summary of the extracted facts."""
    pipeline = ScrapePipeline()
    try:
        result = pipeline.scrape(url)
    except ScrapeError as exc:
        payload = exc.to_payload()
        typer.echo(f"[scrape] {payload['error']}: {payload['details']}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    page = result.page
    stats = page.stats
    typer.echo(f"[scrape] URL        : {page.url}")
    typer.echo(f"[scrape] Title      : {page.title}")
    if page.meta.description:
        typer.echo(f"[scrape] Description: {page.meta.description}")
    if stats is not None:
        typer.echo(f"[scrape] Headings   : {stats.total_headings}")
        typer.echo(f"[scrape] Paragraphs : {stats.total_paragraphs}")
        typer.echo(f"[scrape] Links      : {stats.total_links}")
        typer.echo(f"[scrape] Images     : {stats.total_images}")
        typer.echo(f"[scrape] Words      : {stats.word_count}")


@app.command("validate")
def validate(
    url: str = typer.Option(..., help="URL to check."),
) -> None:
    """Check a URL against the admission rules without fetching it."""
    result = validate_url(url)
    if not result.is_valid:
        reason = result.error_reason.value if result.error_reason else "invalid"
        typer.echo(f"[validate] Rejected ({reason}): {result.message}")
        raise typer.Exit(1)
    typer.echo(f"[validate] OK: {result.normalized_url}")


# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address."),
    port: Optional[int] = typer.Option(None, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    uvicorn.run(
        "pagescope.api.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
