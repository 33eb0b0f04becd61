"""Operations records, filter parameters, and the incident create payload.

These are the types that cross the collaborator boundary: the ops store
returns them, the HTTP API serializes them, and views render them. Filter
models are frozen so they compare and hash by value — two filters built from
the same selections are the same parameter value.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Stage = Literal["planning", "build", "validation", "staging", "released"]
StepStatus = Literal["pass", "fail", "running", "pending"]
ValidationResult = Literal["pass", "fail", "skipped"]
Severity = Literal["critical", "high", "medium", "low"]
IncidentStatus = Literal["open", "investigating", "resolved"]
FailureMode = Literal[
    "kernel_regression",
    "driver_incompatibility",
    "boot_failure",
    "performance_degradation",
]
Component = Literal["kernel", "driver", "service"]

# Filter value that means "no filter on this dimension". Translated by the
# store, never by the sessions.
ALL = "all"


# ── Records ───────────────────────────────────────────────────────────────────

class Release(BaseModel):
    """A Linux system release moving through the delivery stages.

    Attributes:
        id: Store-assigned integer ID.
        name: Display name (e.g. "Aurora 24.10").
        linux_version: Kernel version string shipped by the release.
        build_id: Build system identifier.
        stage: Current delivery stage.
        owner: Release owner email.
        created_at: When the release was opened.
    """

    id: int
    name: str
    linux_version: str
    build_id: str
    stage: Stage
    owner: str
    created_at: datetime


class PipelineStep(BaseModel):
    """One CI/CD step executed for a release."""

    id: int
    release_id: int
    step_name: str
    status: StepStatus
    duration_sec: float | None = None
    created_at: datetime


class Validation(BaseModel):
    """Outcome of one validation suite run against a release."""

    id: int
    release_id: int
    suite: str
    result: ValidationResult
    details: str = ""
    created_at: datetime


class Incident(BaseModel):
    """An incident tracked by the on-call view.

    Attributes:
        request_id: Idempotency token of the submission that created this
            incident. None for seeded incidents.
    """

    id: int
    title: str
    severity: Severity
    status: IncidentStatus = "open"
    failure_mode: FailureMode
    owner: str
    created_at: datetime
    request_id: str | None = None


class Metric(BaseModel):
    """One simulated performance sample for a system component."""

    id: int
    ts: datetime
    component: Component
    latency_ms: float
    error_rate: float
    cpu_pct: float


class DashboardStats(BaseModel):
    """Headline counters for the overview dashboard."""

    total_releases: int = 0
    failed_pipelines: int = 0
    open_incidents: int = 0
    last_validation_pass: int = 0


# ── Filter parameters ─────────────────────────────────────────────────────────

class _Filter(BaseModel):
    model_config = ConfigDict(frozen=True)


class ReleaseFilter(_Filter):
    stage: str | None = None


class PipelineFilter(_Filter):
    release_id: int | None = None


class ValidationFilter(_Filter):
    result: str | None = None


class IncidentFilter(_Filter):
    severity: str | None = None
    status: str | None = None


class MetricsFilter(_Filter):
    component: str | None = None


class RecentFilter(_Filter):
    """Parameters for "latest N" loads (recent releases, metric series)."""

    limit: int = Field(default=5, ge=1)


# ── Mutation payloads ─────────────────────────────────────────────────────────

class IncidentCreate(BaseModel):
    """Payload for creating an incident.

    request_id is the idempotency token. The store maps each token to the
    incident it created, so a resent payload returns the original record
    instead of creating a second one.
    """

    title: str
    severity: Severity = "medium"
    failure_mode: FailureMode = "kernel_regression"
    owner: str
    request_id: str

    @field_validator("title", "owner", "request_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value
