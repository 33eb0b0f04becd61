"""Page view-controllers, keyed by the name the CLI uses for each page."""

from views.base import ViewController
from views.dashboard import DashboardView
from views.incidents import IncidentsView
from views.metrics import MetricsView
from views.pipelines import PipelinesView
from views.releases import ReleasesView, ValidationsView

PAGES: dict[str, type[ViewController]] = {
    "dashboard": DashboardView,
    "releases": ReleasesView,
    "pipelines": PipelinesView,
    "validations": ValidationsView,
    "incidents": IncidentsView,
    "metrics": MetricsView,
}

__all__ = [
    "PAGES",
    "DashboardView",
    "IncidentsView",
    "MetricsView",
    "PipelinesView",
    "ReleasesView",
    "ValidationsView",
    "ViewController",
]
