"""In-memory ops store.

OpsStore holds the releases, pipeline steps, validations, incidents and
simulated metrics the dashboard reads. It is seeded from
fixtures/ops_seed.json and lives for the lifetime of the process — it is not
a database and nothing is written to disk.

Filter semantics live here, not in the sessions: a filter value of None, ""
or "all" means "no filter on this dimension".

Incident creation is idempotent on request_id. The first submission with a
given token creates the incident; every later delivery of the same token
returns that same incident unchanged.
"""

import json
import logging
import pathlib
from datetime import datetime, timezone
from typing import Any

from ops.simulate import simulate_metrics
from schemas.ops import (
    ALL,
    DashboardStats,
    Incident,
    IncidentCreate,
    Metric,
    PipelineStep,
    Release,
    Validation,
)

logger = logging.getLogger(__name__)

SEED_FIXTURE = pathlib.Path(__file__).parent.parent / "fixtures" / "ops_seed.json"
DEFAULT_METRIC_COUNT = 60


def is_unfiltered(value: Any) -> bool:
    """True if a filter value means "match everything"."""
    return value is None or value == "" or value == ALL


class OpsStore:
    """Typed in-RAM store for the dashboard's records.

    Every read returns fresh lists, so callers cannot mutate the store by
    editing a result.

    Attributes:
        _releases, _pipelines, _validations, _incidents, _metrics: Record
            lists keyed by nothing — they are small and scanned on read.
        _by_request: Maps an idempotency token to the incident it created.
    """

    def __init__(
        self,
        releases: list[Release] | None = None,
        pipelines: list[PipelineStep] | None = None,
        validations: list[Validation] | None = None,
        incidents: list[Incident] | None = None,
        metrics: list[Metric] | None = None,
    ) -> None:
        self._releases = list(releases or [])
        self._pipelines = list(pipelines or [])
        self._validations = list(validations or [])
        self._incidents = list(incidents or [])
        self._metrics = list(metrics or [])
        self._by_request: dict[str, int] = {
            i.request_id: i.id for i in self._incidents if i.request_id
        }

    @classmethod
    def from_fixture(
        cls,
        path: pathlib.Path = SEED_FIXTURE,
        *,
        metrics_seed: int = 42,
        metric_count: int = DEFAULT_METRIC_COUNT,
    ) -> "OpsStore":
        """Build a store from the JSON seed file plus simulated metrics.

        Args:
            path: Seed fixture with "releases", "pipelines", "validations"
                and "incidents" arrays. Missing keys are treated as empty.
            metrics_seed: Seed for the simulated metric generator.
            metric_count: Number of metric samples to generate.
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        store = cls(
            releases=[Release(**r) for r in data.get("releases", [])],
            pipelines=[PipelineStep(**p) for p in data.get("pipelines", [])],
            validations=[Validation(**v) for v in data.get("validations", [])],
            incidents=[Incident(**i) for i in data.get("incidents", [])],
            metrics=simulate_metrics(metric_count, seed=metrics_seed),
        )
        logger.info(
            "Seeded ops store from %s: %d releases, %d pipeline steps, %d incidents, %d metrics.",
            path.name,
            len(store._releases),
            len(store._pipelines),
            len(store._incidents),
            len(store._metrics),
        )
        return store

    # ── Releases ──────────────────────────────────────────────────────────────

    def list_releases(self, stage: str | None = None) -> list[Release]:
        """Return releases newest first, optionally restricted to one stage."""
        releases = [r for r in self._releases if is_unfiltered(stage) or r.stage == stage]
        return sorted(releases, key=lambda r: r.created_at, reverse=True)

    def recent_releases(self, limit: int = 5) -> list[Release]:
        return self.list_releases()[:limit]

    # ── Pipelines and validations ─────────────────────────────────────────────

    def list_pipelines(self, release_id: int | None = None) -> list[PipelineStep]:
        """Return pipeline steps newest first, optionally for one release."""
        steps = [
            p for p in self._pipelines
            if is_unfiltered(release_id) or p.release_id == release_id
        ]
        return sorted(steps, key=lambda p: p.created_at, reverse=True)

    def list_validations(self, result: str | None = None) -> list[Validation]:
        runs = [v for v in self._validations if is_unfiltered(result) or v.result == result]
        return sorted(runs, key=lambda v: v.created_at, reverse=True)

    # ── Incidents ─────────────────────────────────────────────────────────────

    def list_incidents(
        self,
        severity: str | None = None,
        status: str | None = None,
    ) -> list[Incident]:
        """Return incidents newest first, filtered on severity and status."""
        incidents = [
            i for i in self._incidents
            if (is_unfiltered(severity) or i.severity == severity)
            and (is_unfiltered(status) or i.status == status)
        ]
        return sorted(incidents, key=lambda i: i.created_at, reverse=True)

    def create_incident(self, payload: IncidentCreate | dict) -> tuple[Incident, bool]:
        """Create an incident once per request_id.

        Args:
            payload: An IncidentCreate, or a dict validated into one.

        Returns:
            (incident, created). created is False when request_id was seen
            before; the incident is then the one the first delivery created.

        Raises:
            pydantic.ValidationError: If a dict payload is invalid.
        """
        if not isinstance(payload, IncidentCreate):
            payload = IncidentCreate.model_validate(payload)

        existing_id = self._by_request.get(payload.request_id)
        if existing_id is not None:
            logger.info(
                "Duplicate delivery of %s — returning incident %d.",
                payload.request_id,
                existing_id,
            )
            return self._incident_by_id(existing_id), False

        incident = Incident(
            id=max((i.id for i in self._incidents), default=0) + 1,
            title=payload.title,
            severity=payload.severity,
            status="open",
            failure_mode=payload.failure_mode,
            owner=payload.owner,
            created_at=datetime.now(timezone.utc),
            request_id=payload.request_id,
        )
        self._incidents.append(incident)
        self._by_request[payload.request_id] = incident.id
        logger.info("Created incident %d '%s' (%s).", incident.id, incident.title, incident.severity)
        return incident, True

    def _incident_by_id(self, incident_id: int) -> Incident:
        return next(i for i in self._incidents if i.id == incident_id)

    # ── Metrics ───────────────────────────────────────────────────────────────

    def list_metrics(self, component: str | None = None) -> list[Metric]:
        """Return metric samples newest first, optionally for one component."""
        samples = [m for m in self._metrics if is_unfiltered(component) or m.component == component]
        return sorted(samples, key=lambda m: m.ts, reverse=True)

    def metrics_time_series(self, limit: int = 30) -> list[Metric]:
        """Return the latest limit samples in chronological order, for charting."""
        latest = sorted(self._metrics, key=lambda m: m.ts)[-limit:]
        return latest

    # ── Dashboard ─────────────────────────────────────────────────────────────

    def dashboard_stats(self) -> DashboardStats:
        """Compute the headline counters shown on the overview page.

        total_releases counts releases still in flight (not yet released).
        last_validation_pass is 1 if the newest validation run passed.
        """
        validations = self.list_validations()
        return DashboardStats(
            total_releases=sum(1 for r in self._releases if r.stage != "released"),
            failed_pipelines=sum(1 for p in self._pipelines if p.status == "fail"),
            open_incidents=sum(1 for i in self._incidents if i.status != "resolved"),
            last_validation_pass=1 if validations and validations[0].result == "pass" else 0,
        )
