"""In-process action descriptors backed by an OpsStore.

build_local_actions() wires every dashboard operation to a store living in
the same process. ops/client.py builds the same action names against the
HTTP API, so views work unchanged with either registry.

Parameters may be a filter model, a plain mapping, or None. Fields that are
missing, "" or "all" mean no filter — the store applies that rule.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from actions.base import Action
from actions.errors import RemoteError
from core.registry import ActionRegistry
from ops.store import OpsStore
from schemas.ops import (
    IncidentCreate,
    IncidentFilter,
    MetricsFilter,
    PipelineFilter,
    RecentFilter,
    ReleaseFilter,
    ValidationFilter,
)

LOAD_DASHBOARD_STATS = "load_dashboard_stats"
LOAD_RECENT_RELEASES = "load_recent_releases"
LOAD_ALL_RELEASES = "load_all_releases"
LOAD_PIPELINES = "load_pipelines"
LOAD_VALIDATIONS = "load_validations"
LOAD_INCIDENTS = "load_incidents"
CREATE_INCIDENT = "create_incident"
LOAD_METRICS = "load_metrics"
LOAD_METRICS_TIME_SERIES = "load_metrics_time_series"

DEFAULT_SERIES_LIMIT = 30


def param(params: Any, name: str, default: Any = None) -> Any:
    """Read one field from a filter model, a mapping, or None."""
    if params is None:
        return default
    if isinstance(params, BaseModel):
        return getattr(params, name, default)
    if isinstance(params, Mapping):
        return params.get(name, default)
    return default


def build_local_actions(store: OpsStore, *, latency: float = 0.0) -> ActionRegistry:
    """Register every dashboard action against store.

    Args:
        store: The store the actions read from and write to.
        latency: Artificial delay in seconds before each call returns.
            Used by the CLI's watch mode so the loading states are visible.

    Returns:
        A registry holding one descriptor per action name above.
    """

    async def pause() -> None:
        if latency > 0:
            await asyncio.sleep(latency)

    async def load_dashboard_stats(params: Any) -> list:
        await pause()
        return [store.dashboard_stats()]

    async def load_recent_releases(params: Any) -> list:
        await pause()
        return store.recent_releases(param(params, "limit", 5))

    async def load_all_releases(params: Any) -> list:
        await pause()
        return store.list_releases(param(params, "stage"))

    async def load_pipelines(params: Any) -> list:
        await pause()
        return store.list_pipelines(param(params, "release_id"))

    async def load_validations(params: Any) -> list:
        await pause()
        return store.list_validations(param(params, "result"))

    async def load_incidents(params: Any) -> list:
        await pause()
        return store.list_incidents(param(params, "severity"), param(params, "status"))

    async def create_incident(payload: Any) -> Any:
        await pause()
        try:
            incident, _ = store.create_incident(dict(payload))
        except ValidationError as exc:
            raise RemoteError(_validation_message(exc), status_code=422) from exc
        return incident

    async def load_metrics(params: Any) -> list:
        await pause()
        return store.list_metrics(param(params, "component"))

    async def load_metrics_time_series(params: Any) -> list:
        await pause()
        return store.metrics_time_series(param(params, "limit", DEFAULT_SERIES_LIMIT))

    registry = ActionRegistry()
    registry.register(Action(LOAD_DASHBOARD_STATS, load_dashboard_stats))
    registry.register(Action(LOAD_RECENT_RELEASES, load_recent_releases, RecentFilter))
    registry.register(Action(LOAD_ALL_RELEASES, load_all_releases, ReleaseFilter))
    registry.register(Action(LOAD_PIPELINES, load_pipelines, PipelineFilter))
    registry.register(Action(LOAD_VALIDATIONS, load_validations, ValidationFilter))
    registry.register(Action(LOAD_INCIDENTS, load_incidents, IncidentFilter))
    registry.register(Action(CREATE_INCIDENT, create_incident, IncidentCreate))
    registry.register(Action(LOAD_METRICS, load_metrics, MetricsFilter))
    registry.register(Action(LOAD_METRICS_TIME_SERIES, load_metrics_time_series, RecentFilter))
    return registry


def _validation_message(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one line for display."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        parts.append(f"{field}: {err['msg']}")
    return "Invalid incident: " + "; ".join(parts)
