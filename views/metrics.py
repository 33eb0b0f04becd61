"""System metrics page and CSV export."""

import csv
import io
import logging
import pathlib
import time

from ops.actions import LOAD_METRICS
from schemas.ops import Metric, MetricsFilter
from views.base import ViewController

logger = logging.getLogger(__name__)

HIGH_LATENCY_MS = 100.0
HIGH_ERROR_RATE_PCT = 5.0

CSV_HEADER = ["Timestamp", "Component", "Latency (ms)", "Error Rate (%)", "CPU (%)"]


def is_high_latency(latency_ms: float) -> bool:
    return float(latency_ms) > HIGH_LATENCY_MS


def is_high_error_rate(error_rate: float) -> bool:
    return float(error_rate) > HIGH_ERROR_RATE_PCT


def has_issue(metric: Metric) -> bool:
    """True if the sample should be highlighted in the table."""
    return is_high_latency(metric.latency_ms) or is_high_error_rate(metric.error_rate)


def metrics_to_csv(metrics: list[Metric]) -> str:
    """Serialize metrics to CSV text: a header row, then one row per sample."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for m in metrics:
        writer.writerow([
            m.ts.isoformat(),
            m.component,
            str(m.latency_ms),
            str(m.error_rate),
            str(m.cpu_pct),
        ])
    return buffer.getvalue()


class MetricsView(ViewController):
    """Simulated performance metrics, filterable by component."""

    title = "System Metrics"
    subtitle = "Monitor system performance across kernel, driver, and service components"

    def __init__(self, actions, *, events=None, component: str = "") -> None:
        super().__init__(actions, events=events)
        self.component_filter = component
        self.metrics = None

    def _on_open(self) -> None:
        self.metrics = self._load(LOAD_METRICS, self._params(), name="metrics")

    def set_component_filter(self, component: str) -> bool:
        self.component_filter = component
        return self._rebind(self.metrics, self._params())

    def _params(self) -> MetricsFilter:
        return MetricsFilter(component=self.component_filter)

    @property
    def can_export(self) -> bool:
        return self.metrics is not None and bool(self.metrics.data)

    def export_csv(self) -> str:
        """Return the currently loaded samples as CSV text."""
        return metrics_to_csv(self.metrics.data if self.metrics is not None else [])

    def write_csv(self, directory: pathlib.Path) -> pathlib.Path:
        """Write the export to directory as metrics-<epoch ms>.csv.

        Raises:
            ValueError: If there is nothing loaded to export.
        """
        if not self.can_export:
            raise ValueError("No metrics loaded — nothing to export.")
        path = pathlib.Path(directory) / f"metrics-{int(time.time() * 1000)}.csv"
        path.write_text(self.export_csv(), encoding="utf-8")
        logger.info("Exported %d metric rows to %s.", len(self.metrics.data), path)
        return path
