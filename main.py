"""OpsBoard — API server.

Exposes the dashboard's remote operations over HTTP. The HTTP actions in
ops/client.py are the intended consumer; every route is a thin wrapper over
OpsStore.

Routes:
    GET  /health
    GET  /api/dashboard/stats          -> [DashboardStats]
    GET  /api/releases?stage=          -> [Release]
    GET  /api/releases/recent?limit=   -> [Release]
    GET  /api/pipelines?release_id=    -> [PipelineStep]
    GET  /api/validations?result=      -> [Validation]
    GET  /api/incidents?severity=&status= -> [Incident]
    POST /api/incidents                -> Incident (201 created, 200 replay)
    GET  /api/metrics?component=       -> [Metric]
    GET  /api/metrics/timeseries?limit= -> [Metric]

Run locally:
    uv run uvicorn main:app --reload
"""

import logging

import uvicorn
from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, configure_logging, load_settings
from ops.store import OpsStore
from schemas.ops import (
    DashboardStats,
    Incident,
    IncidentCreate,
    Metric,
    PipelineStep,
    Release,
    Validation,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(store: OpsStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app around a store.

    Args:
        store: Store to serve. Defaults to one seeded from the fixture.
        settings: Settings for CORS and the metrics seed. Defaults to
            load_settings().
    """
    settings = settings or load_settings()
    store = store or OpsStore.from_fixture(metrics_seed=settings.metrics_seed)

    app = FastAPI(title="OpsBoard", version=VERSION)
    app.state.store = store

    # Allow a browser frontend on another origin to call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ── Health ────────────────────────────────────────────────────────────────

    @app.get("/health")
    def health():
        return {"status": "ok", "version": VERSION}

    # ── Reads ─────────────────────────────────────────────────────────────────

    @app.get("/api/dashboard/stats", response_model=list[DashboardStats])
    def dashboard_stats():
        return [store.dashboard_stats()]

    @app.get("/api/releases", response_model=list[Release])
    def list_releases(stage: str | None = None):
        return store.list_releases(stage)

    @app.get("/api/releases/recent", response_model=list[Release])
    def recent_releases(limit: int = Query(default=5, ge=1, le=100)):
        return store.recent_releases(limit)

    @app.get("/api/pipelines", response_model=list[PipelineStep])
    def list_pipelines(release_id: int | None = None):
        return store.list_pipelines(release_id)

    @app.get("/api/validations", response_model=list[Validation])
    def list_validations(result: str | None = None):
        return store.list_validations(result)

    @app.get("/api/incidents", response_model=list[Incident])
    def list_incidents(severity: str | None = None, status: str | None = None):
        return store.list_incidents(severity, status)

    @app.get("/api/metrics", response_model=list[Metric])
    def list_metrics(component: str | None = None):
        return store.list_metrics(component)

    @app.get("/api/metrics/timeseries", response_model=list[Metric])
    def metrics_time_series(limit: int = Query(default=30, ge=1, le=1000)):
        return store.metrics_time_series(limit)

    # ── Writes ────────────────────────────────────────────────────────────────

    @app.post("/api/incidents", response_model=Incident, status_code=201)
    def create_incident(payload: IncidentCreate, response: Response):
        """Create an incident, or replay the one created for this request_id.

        A second delivery of the same request_id (a client retry, a double
        submit) gets the original incident back with 200 instead of 201.
        """
        incident, created = store.create_incident(payload)
        if not created:
            response.status_code = 200
        return incident

    logger.info("OpsBoard API ready (%d CORS origin(s)).", len(settings.allowed_origins))
    return app


_settings = load_settings()
configure_logging(_settings)
app = create_app(settings=_settings)


if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
