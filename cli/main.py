"""VosDroits CLI: entry-point for every tool the server exposes.

Usage:
    python cli/main.py --help

Commands:
    search       → search_procedures / search_impots
    article      → get_article / get_impots_article
    categories   → list_categories / list_impots_categories
    life-events  → list_life_events
    life-event   → get_life_event_details
    serve        → run the HTTP API under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from vosdroits.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from vosdroits.config import settings
from vosdroits.log_config import configure_logging
from vosdroits.scraper import SITES, SiteClient, get_site

from cli.context import interruptible, report_errors
from cli.rendering import (
    render_article,
    render_categories,
    render_life_event_detail,
    render_life_events,
    render_search_results,
    to_json,
)

app = typer.Typer(
    name="vosdroits",
    help="Query service-public.gouv.fr and impots.gouv.fr.",
    no_args_is_help=True,
)

_SITE_HELP = f"Target site: {' | '.join(SITES)}."


def _client(site: str, timeout: Optional[float]) -> SiteClient:
    try:
        profile = get_site(site)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]), param_hint="--site") from exc
    return SiteClient(profile, timeout=timeout)


def _require(value: str, name: str) -> str:
    if not value.strip():
        raise typer.BadParameter(f"{name} cannot be empty", param_hint=name)
    return value.strip()


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="debug | info | warn | error"),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# List commands
# ---------------------------------------------------------------------------
@app.command("search")
@report_errors
def search(
    query: str = typer.Argument(..., help="Search query."),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum number of results (1-100)."),
    site: str = typer.Option("service-public", "--site", help=_SITE_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-fetch deadline in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """Search procedures (service-public) or tax documents (impots)."""
    query = _require(query, "query")
    client = _client(site, timeout)
    with interruptible() as cancel:
        results = client.search(query, limit, cancel=cancel)
    if as_json:
        typer.echo(to_json(results))
        return
    typer.echo(f"[search] Found {len(results)} result(s) for {query!r} on {client.site.name}")
    typer.echo(render_search_results(results))


@app.command("categories")
@report_errors
def categories(
    site: str = typer.Option("service-public", "--site", help=_SITE_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-fetch deadline in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """List the site's top-level categories."""
    client = _client(site, timeout)
    with interruptible() as cancel:
        found = client.list_categories(cancel=cancel)
    if as_json:
        typer.echo(to_json(found))
        return
    typer.echo(f"[categories] Found {len(found)} categories on {client.site.name}")
    typer.echo(render_categories(found))


@app.command("life-events")
@report_errors
def life_events(
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-fetch deadline in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """List the life events of service-public.gouv.fr."""
    client = _client("service-public", timeout)
    with interruptible() as cancel:
        events = client.list_life_events(cancel=cancel)
    if as_json:
        typer.echo(to_json(events))
        return
    typer.echo(f"[life-events] Found {len(events)} life events")
    typer.echo(render_life_events(events))


# ---------------------------------------------------------------------------
# Single-document commands
# ---------------------------------------------------------------------------
@app.command("article")
@report_errors
def article(
    url: str = typer.Argument(..., help="Article URL (absolute, or a path on the site)."),
    site: str = typer.Option("service-public", "--site", help=_SITE_HELP),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-fetch deadline in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """Retrieve one article or form page."""
    url = _require(url, "url")
    client = _client(site, timeout)
    with interruptible() as cancel:
        doc = client.get_document(url, cancel=cancel)
    if as_json:
        typer.echo(to_json(doc))
        return
    typer.echo(render_article(doc))


@app.command("life-event")
@report_errors
def life_event(
    url: str = typer.Argument(..., help="Life-event content sheet URL (F-prefixed identifier)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-fetch deadline in seconds."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """Retrieve one life event split into titled sections."""
    url = _require(url, "url")
    client = _client("service-public", timeout)
    with interruptible() as cancel:
        detail = client.get_life_event_detail(url, cancel=cancel)
    if as_json:
        typer.echo(to_json(detail))
        return
    typer.echo(render_life_event_detail(detail))


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option(settings.api_host, "--host", help="Bind address."),
    port: int = typer.Option(settings.api_port, "--port", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API."""
    import uvicorn  # noqa: PLC0415

    typer.echo(f"[serve] {settings.server_name} {settings.server_version} on http://{host}:{port}")
    uvicorn.run("vosdroits.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
