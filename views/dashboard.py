"""Release overview dashboard."""

from dataclasses import dataclass

from ops.actions import LOAD_DASHBOARD_STATS, LOAD_METRICS_TIME_SERIES, LOAD_RECENT_RELEASES
from schemas.ops import DashboardStats, RecentFilter
from views.base import ViewController

RECENT_RELEASES = 5
CHART_POINTS = 30


@dataclass
class ChartPoint:
    """One x-position on the latency / error-rate chart."""

    time: str
    latency: float
    error_rate: float
    component: str


class DashboardView(ViewController):
    """Headline counters, a metrics chart and the most recent releases.

    The three sessions load independently; each section renders its own
    loading state.
    """

    title = "Release Overview Dashboard"
    subtitle = "Monitor Linux system releases, pipelines, and validation status"

    def __init__(self, actions, *, events=None) -> None:
        super().__init__(actions, events=events)
        self.stats_session = None
        self.releases = None
        self.metrics = None

    def _on_open(self) -> None:
        self.stats_session = self._load(LOAD_DASHBOARD_STATS, None, name="dashboard_stats")
        self.releases = self._load(
            LOAD_RECENT_RELEASES, RecentFilter(limit=RECENT_RELEASES), name="recent_releases",
        )
        self.metrics = self._load(
            LOAD_METRICS_TIME_SERIES, RecentFilter(limit=CHART_POINTS), name="metrics_series",
        )

    def stats(self) -> DashboardStats:
        """Return the loaded counters, or all zeros until they arrive."""
        data = self.stats_session.data if self.stats_session is not None else []
        return data[0] if data else DashboardStats()

    def validation_label(self) -> str:
        return "PASS" if self.stats().last_validation_pass > 0 else "N/A"

    def chart_points(self) -> list[ChartPoint]:
        if self.metrics is None:
            return []
        return [
            ChartPoint(
                time=m.ts.strftime("%H:%M"),
                latency=float(m.latency_ms),
                error_rate=float(m.error_rate),
                component=m.component,
            )
            for m in self.metrics.data
        ]
