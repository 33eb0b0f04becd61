"""OpsBoard — terminal dashboard.

Opens one page, waits for its sessions to load, and renders it with Rich.
Runs against the in-process store by default, or against the API server
when --api (or OPSBOARD_API_URL) is given.

Usage:
    uv run python cli.py incidents --filter severity=critical --filter status=open
    uv run python cli.py metrics --filter component=kernel --export ./exports
    uv run python cli.py incidents --create "Boot loop on rev B boards" --owner a@b.com
    uv run python cli.py dashboard --watch
    uv run python cli.py pipelines --api http://127.0.0.1:8000
"""

import argparse
import asyncio
import logging
import pathlib

from rich.console import Console

from config import configure_logging, load_settings
from core.registry import ActionRegistry
from display.live import LiveDisplay
from display.tables import RENDERERS
from ops.actions import build_local_actions
from ops.client import build_http_actions, make_client
from ops.store import OpsStore
from views import PAGES, IncidentsView, MetricsView, ViewController

console = Console()
logger = logging.getLogger(__name__)

# Artificial per-call delay in watch mode so the loading panels are visible.
WATCH_LATENCY_SECONDS = 0.4


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="opsboard", description="Operations dashboard.")
    parser.add_argument("page", choices=sorted(PAGES), nargs="?", default="dashboard")
    parser.add_argument("--api", help="API server root; overrides OPSBOARD_API_URL.")
    parser.add_argument(
        "--filter", action="append", default=[], metavar="KEY=VALUE",
        help="Initial filter selection, e.g. severity=critical. Repeatable.",
    )
    parser.add_argument("--watch", action="store_true", help="Show live session panels while loading.")
    parser.add_argument("--export", type=pathlib.Path, metavar="DIR", help="Metrics page: write a CSV export.")
    parser.add_argument("--create", metavar="TITLE", help="Incidents page: create an incident.")
    parser.add_argument("--owner", default="", help="Owner email for --create.")
    parser.add_argument("--severity", default="medium", help="Severity for --create.")
    parser.add_argument("--failure-mode", default="kernel_regression", help="Failure mode for --create.")
    return parser.parse_args(argv)


def _filters(pairs: list[str]) -> dict[str, str]:
    filters = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"--filter expects KEY=VALUE, got '{pair}'")
        filters[key.strip()] = value.strip()
    return filters


def _build_view(
    args: argparse.Namespace, actions: ActionRegistry, events: asyncio.Queue | None = None,
) -> ViewController:
    """Construct the requested page with its --filter selections.

    Raises:
        SystemExit: If a filter is unknown to the page or its value is invalid.
    """
    filters = _filters(args.filter)
    try:
        return PAGES[args.page](actions, events=events, **filters)
    except TypeError:
        raise SystemExit(f"Unsupported filter for page '{args.page}': {', '.join(args.filter)}") from None
    except ValueError as exc:
        raise SystemExit(f"Invalid filter for page '{args.page}': {exc}") from None


async def _drive(view: ViewController, args: argparse.Namespace) -> None:
    """Wait for an open view, run the requested actions, and print the page."""
    await view.wait()

    if args.create and isinstance(view, IncidentsView):
        view.open_dialog()
        view.form.title = args.create
        view.form.owner = args.owner
        view.form.severity = args.severity
        view.form.failure_mode = args.failure_mode
        if not view.can_submit:
            console.print("[yellow]--create needs a title and --owner.[/yellow]")
        else:
            outcome = await view.submit_incident()
            if outcome.ok:
                console.print(f"[green]Created incident #{outcome.value.id}[/green] [dim]({outcome.token})[/dim]")
            else:
                console.print(f"[red]Create failed:[/red] {view.create_error}")

    console.print(RENDERERS[args.page](view))

    if args.export and isinstance(view, MetricsView):
        if view.can_export:
            path = view.write_csv(args.export)
            console.print(f"[dim]exported {path}[/dim]")
        else:
            console.print("[yellow]Nothing to export.[/yellow]")


async def _run(args: argparse.Namespace) -> None:
    settings = load_settings()
    configure_logging(settings)

    api_url = args.api or settings.api_url
    client = None
    if api_url:
        client = make_client(api_url, retries=settings.http_retries, timeout=settings.http_timeout)
        actions: ActionRegistry = build_http_actions(client)
    else:
        store = OpsStore.from_fixture(metrics_seed=settings.metrics_seed)
        actions = build_local_actions(store, latency=WATCH_LATENCY_SECONDS if args.watch else 0.0)

    logger.info(
        "Backend %s with %d actions: %s",
        api_url or "local store",
        len(actions),
        ", ".join(a.name for a in actions.get_all()),
    )

    events: asyncio.Queue | None = asyncio.Queue() if args.watch else None
    try:
        view = _build_view(args, actions, events)

        console.rule("[bold]OpsBoard[/bold]")
        console.print(f"  backend  [cyan]{api_url or 'local store'}[/cyan]")
        console.print()

        async with view:
            if events is not None:
                display = LiveDisplay()
                with display.make_live() as live:
                    consumer = asyncio.create_task(display.consume(events, live))
                    await view.wait()
                    await events.put(None)   # sentinel: tell consumer to stop
                    await consumer
                for session in view.sessions:
                    if display.status_of(session.name) == "error":
                        console.print(f"[red]✗ {session.name} failed:[/red] {session.error.message}")
            await _drive(view, args)
    finally:
        if client is not None:
            await client.aclose()


def main(argv: list[str] | None = None) -> None:
    asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    main()
