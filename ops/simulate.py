"""Simulated performance signals.

The dashboard has no live telemetry source; metrics are generated here from
per-component baselines with Gaussian noise and occasional spikes. A fixed
seed makes the series reproducible, which the tests rely on.
"""

import random
from datetime import datetime, timedelta, timezone

from schemas.ops import Metric

COMPONENTS = ("kernel", "driver", "service")

# component -> (latency_ms, error_rate %, cpu %)
BASELINES = {
    "kernel": (38.0, 0.6, 41.0),
    "driver": (62.0, 1.4, 27.0),
    "service": (85.0, 2.2, 55.0),
}

SPIKE_PROBABILITY = 0.12
SPIKE_FACTOR = 2.6
DEFAULT_INTERVAL = timedelta(minutes=5)


def simulate_metrics(
    count: int = 60,
    *,
    seed: int = 42,
    start: datetime | None = None,
    interval: timedelta = DEFAULT_INTERVAL,
) -> list[Metric]:
    """Generate count samples, cycling through the components in order.

    Args:
        count: Number of samples to produce.
        seed: Seed for the private random generator.
        start: Timestamp of the first sample. Defaults to count intervals
            before now, so the series ends at the present.
        interval: Spacing between consecutive samples.

    Returns:
        Metrics with ids 1..count in chronological order.
    """
    rng = random.Random(seed)
    if start is None:
        start = datetime.now(timezone.utc) - interval * count

    metrics = []
    for i in range(count):
        component = COMPONENTS[i % len(COMPONENTS)]
        latency, error_rate, cpu = BASELINES[component]

        # Spikes hit latency and errors together, the way a real
        # degradation shows up on the dashboard.
        factor = SPIKE_FACTOR if rng.random() < SPIKE_PROBABILITY else 1.0

        metrics.append(Metric(
            id=i + 1,
            ts=start + interval * i,
            component=component,
            latency_ms=round(max(1.0, rng.gauss(latency, latency * 0.15) * factor), 1),
            error_rate=round(max(0.0, rng.gauss(error_rate, error_rate * 0.3) * factor), 2),
            cpu_pct=round(min(100.0, max(0.0, rng.gauss(cpu, 6.0))), 1),
        ))
    return metrics
