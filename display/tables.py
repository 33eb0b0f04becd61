"""Rich rendering for each dashboard page.

Each render_* function takes an open view-controller and returns a Rich
renderable. Sections follow the same precedence everywhere:

    loading  -> "Loading ..." placeholder
    error    -> "Error loading ...: <message>"
    empty    -> "No ... found"
    otherwise the table

Rendering reads session state only; it never triggers a load.
"""

from typing import Callable

from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.load_session import LoadSession
from views.dashboard import DashboardView
from views.incidents import IncidentsView
from views.metrics import MetricsView, is_high_error_rate, is_high_latency
from views.pipelines import PipelinesView
from views.releases import ReleasesView, ValidationsView

# ── Badge styles ──────────────────────────────────────────────────────────────

SEVERITY_STYLES = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "medium": "bold black on yellow",
    "low": "bold white on blue",
}
INCIDENT_STATUS_STYLES = {
    "open": "red",
    "investigating": "yellow",
    "resolved": "green",
}
STEP_STATUS_STYLES = {
    "pass": "green",
    "fail": "red",
    "running": "yellow",
    "pending": "bright_black",
}
STAGE_STYLES = {
    "planning": "bright_black",
    "build": "blue",
    "validation": "magenta",
    "staging": "yellow",
    "released": "green",
}
FAILURE_MODE_LABELS = {
    "kernel_regression": "Kernel Regression",
    "driver_incompatibility": "Driver Incompatibility",
    "boot_failure": "Boot Failure",
    "performance_degradation": "Performance Degradation",
}


def badge(value: str, styles: dict[str, str]) -> Text:
    """Upper-cased value rendered in its style (dim if unknown)."""
    return Text(f" {value.upper()} ", style=styles.get(value, "dim"))


def _timestamp(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _section(
    session: LoadSession,
    noun: str,
    build: Callable[[list], RenderableType],
) -> RenderableType:
    """Apply the loading / error / empty / table precedence for one section."""
    if session.loading:
        return Text(f"Loading {noun}...", style="dim")
    if session.error is not None:
        return Text(f"Error loading {noun}: {session.error.message}", style="red")
    data = session.data
    if not data:
        return Text(f"No {noun} found", style="dim")
    return build(data)


def _header(view) -> Text:
    return Text.from_markup(f"[bold]{view.title}[/bold]\n[dim]{view.subtitle}[/dim]")


# ── Dashboard ─────────────────────────────────────────────────────────────────

def render_dashboard(view: DashboardView) -> RenderableType:
    stats = view.stats()
    pending = view.stats_session.loading

    def card(title: str, value, style: str) -> Panel:
        body = Text("...", style="dim") if pending else Text(str(value), style=style)
        return Panel(body, title=title, width=26)

    cards = Columns([
        card("Active Releases", stats.total_releases, "bold"),
        card("Failed Pipeline Steps", stats.failed_pipelines, "bold red"),
        card("Open Incidents", stats.open_incidents, "bold dark_orange"),
        card("Last Validation", view.validation_label(), "bold green"),
    ])

    def chart(_data) -> Table:
        table = Table(title="System Metrics (Simulated Signals)", border_style="bright_black")
        table.add_column("Time", style="dim")
        table.add_column("Component")
        table.add_column("Latency (ms)", justify="right")
        table.add_column("Error Rate (%)", justify="right")
        for point in view.chart_points():
            table.add_row(
                point.time,
                point.component,
                f"{point.latency:.1f}",
                f"{point.error_rate:.2f}",
            )
        return table

    def releases(data) -> Table:
        table = Table(title="Recent Releases", border_style="bright_black")
        table.add_column("Name", style="bold")
        table.add_column("Linux Version")
        table.add_column("Build ID", style="dim")
        table.add_column("Stage")
        table.add_column("Owner")
        for r in data:
            table.add_row(r.name, r.linux_version, r.build_id, badge(r.stage, STAGE_STYLES), r.owner)
        return table

    return Group(
        _header(view),
        cards,
        _section(view.metrics, "metrics", chart),
        _section(view.releases, "releases", releases),
    )


# ── Releases and validations ──────────────────────────────────────────────────

def render_releases(view: ReleasesView) -> RenderableType:
    def build(data) -> Table:
        table = Table(title=f"Releases (stage: {view.stage_filter or 'all'})", border_style="bright_black")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Linux Version")
        table.add_column("Build ID", style="dim")
        table.add_column("Stage")
        table.add_column("Owner")
        table.add_column("Created", style="dim")
        for r in data:
            table.add_row(
                str(r.id), r.name, r.linux_version, r.build_id,
                badge(r.stage, STAGE_STYLES), r.owner, _timestamp(r.created_at),
            )
        return table

    return Group(_header(view), _section(view.releases, "releases", build))


def render_validations(view: ValidationsView) -> RenderableType:
    def build(data) -> Table:
        table = Table(title="Validation Runs", border_style="bright_black")
        table.add_column("Suite", style="bold")
        table.add_column("Release ID", justify="right", style="dim")
        table.add_column("Result")
        table.add_column("Details")
        table.add_column("Run At", style="dim")
        for v in data:
            table.add_row(
                v.suite, str(v.release_id), badge(v.result, STEP_STATUS_STYLES),
                v.details, _timestamp(v.created_at),
            )
        return table

    return Group(_header(view), _section(view.validations, "validation results", build))


# ── Pipelines ─────────────────────────────────────────────────────────────────

def render_pipelines(view: PipelinesView) -> RenderableType:
    labels = dict(view.release_options())

    def build(data) -> Table:
        table = Table(
            title=f"Pipeline Steps ({labels.get(view.release_filter, view.release_filter)})",
            border_style="bright_black",
        )
        table.add_column("Step Name", style="bold")
        table.add_column("Release ID", justify="right", style="dim")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Created", style="dim")
        for p in data:
            duration = f"{p.duration_sec:g}s" if p.duration_sec else "N/A"
            table.add_row(
                p.step_name, str(p.release_id), badge(p.status, STEP_STATUS_STYLES),
                duration, _timestamp(p.created_at),
                style="on grey15" if p.status == "fail" else None,
            )
        return table

    return Group(_header(view), _section(view.pipelines, "pipeline data", build))


# ── Incidents ─────────────────────────────────────────────────────────────────

def render_incidents(view: IncidentsView) -> RenderableType:
    def build(data) -> Table:
        table = Table(title="Incidents", border_style="bright_black", show_lines=True)
        table.add_column("Title", style="bold", min_width=28)
        table.add_column("Severity")
        table.add_column("Status")
        table.add_column("Failure Mode")
        table.add_column("Owner")
        table.add_column("Created", style="dim")
        for i in data:
            table.add_row(
                i.title,
                badge(i.severity, SEVERITY_STYLES),
                badge(i.status, INCIDENT_STATUS_STYLES),
                FAILURE_MODE_LABELS.get(i.failure_mode, i.failure_mode),
                i.owner,
                _timestamp(i.created_at),
            )
        return table

    parts: list[RenderableType] = [_header(view), _section(view.incidents, "incidents", build)]
    if view.create_error:
        parts.append(Text(f"Create failed: {view.create_error}", style="red"))
    return Group(*parts)


# ── Metrics ───────────────────────────────────────────────────────────────────

def render_metrics(view: MetricsView) -> RenderableType:
    def build(data) -> Table:
        table = Table(title="Performance Metrics (Simulated Signals)", border_style="bright_black")
        table.add_column("Timestamp", style="dim")
        table.add_column("Component")
        table.add_column("Latency (ms)", justify="right")
        table.add_column("Error Rate (%)", justify="right")
        table.add_column("CPU (%)", justify="right")
        for m in data:
            latency = Text(f"{m.latency_ms:.1f}", style="bold red" if is_high_latency(m.latency_ms) else "")
            errors = Text(f"{m.error_rate:.2f}", style="bold red" if is_high_error_rate(m.error_rate) else "")
            table.add_row(
                m.ts.strftime("%H:%M:%S"),
                m.component.capitalize(),
                latency,
                errors,
                f"{m.cpu_pct:.1f}",
            )
        return table

    return Group(_header(view), _section(view.metrics, "metrics data", build))


RENDERERS: dict[str, Callable] = {
    "dashboard": render_dashboard,
    "releases": render_releases,
    "pipelines": render_pipelines,
    "validations": render_validations,
    "incidents": render_incidents,
    "metrics": render_metrics,
}
