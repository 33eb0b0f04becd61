"""HTTP action descriptors.

Builds the same action names as ops/actions.py, but each invoke() is a call
to the OpsBoard API server (main.py). This is the "remote" half of the
collaborator layer: the sessions see an ordinary ActionDescriptor and never
learn that a network sits behind it.

Error classification:
    httpx.TransportError  -> NetworkError (connection refused, timeout, ...)
    non-2xx response      -> RemoteError carrying the server's "detail"

Mutations resend the exact same body on connection-level retries (handled by
httpx's transport), so a retried create carries the same idempotency token
and the server deduplicates it.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from actions.base import ActionDescriptor
from actions.errors import NetworkError, RemoteError
from core.registry import ActionRegistry
from ops import actions as names
from ops.actions import param
from ops.store import is_unfiltered
from schemas.ops import (
    DashboardStats,
    Incident,
    IncidentCreate,
    IncidentFilter,
    Metric,
    MetricsFilter,
    PipelineFilter,
    PipelineStep,
    RecentFilter,
    Release,
    ReleaseFilter,
    Validation,
    ValidationFilter,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRIES = 2


class HttpAction(ActionDescriptor):
    """ActionDescriptor that calls one endpoint of the API server.

    Attributes:
        method: HTTP method ("GET" or "POST").
        path: Endpoint path relative to the client's base URL.
        query_fields: Parameter fields forwarded as query-string values
            (GET only). None values are omitted.
        record_type: Model used to parse the response; a JSON array is
            parsed item by item.
    """

    def __init__(
        self,
        name: str,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        record_type: type[BaseModel],
        query_fields: tuple[str, ...] = (),
        params_type: type | None = None,
    ) -> None:
        self._name = name
        self._client = client
        self.method = method
        self.path = path
        self.record_type = record_type
        self.query_fields = query_fields
        self.params_type = params_type

    @property
    def name(self) -> str:
        return self._name

    async def invoke(self, params: Any) -> Any:
        try:
            if self.method == "GET":
                response = await self._client.get(self.path, params=self._query(params))
            else:
                response = await self._client.request(self.method, self.path, json=_body(params))
        except httpx.TransportError as exc:
            logger.warning("%s %s failed at transport level: %s", self.method, self.path, exc)
            raise NetworkError(f"Could not reach the API ({type(exc).__name__}): {exc}") from exc

        if response.is_error:
            raise RemoteError(_detail(response), status_code=response.status_code)

        body = response.json()
        if isinstance(body, list):
            return [self.record_type.model_validate(item) for item in body]
        return self.record_type.model_validate(body)

    def _query(self, params: Any) -> dict[str, Any]:
        query = {}
        for field in self.query_fields:
            value = param(params, field)
            if not is_unfiltered(value):
                query[field] = value
        return query


def make_client(
    base_url: str,
    *,
    retries: int = DEFAULT_RETRIES,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the AsyncClient the HTTP actions share.

    Args:
        base_url: API server root, e.g. "http://127.0.0.1:8000".
        retries: Connection-level retries. Each retry resends the same
            request body.
        timeout: Per-request timeout in seconds.
        transport: Override the transport (tests pass httpx.MockTransport).
            When given, retries is ignored.

    The caller owns the client and must close it (`await client.aclose()`).
    """
    if transport is None:
        transport = httpx.AsyncHTTPTransport(retries=retries)
    return httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)


def build_http_actions(client: httpx.AsyncClient) -> ActionRegistry:
    """Register every dashboard action against the API server behind client."""
    registry = ActionRegistry()
    registry.register(HttpAction(
        names.LOAD_DASHBOARD_STATS, client, "GET", "/api/dashboard/stats",
        record_type=DashboardStats,
    ))
    registry.register(HttpAction(
        names.LOAD_RECENT_RELEASES, client, "GET", "/api/releases/recent",
        record_type=Release, query_fields=("limit",), params_type=RecentFilter,
    ))
    registry.register(HttpAction(
        names.LOAD_ALL_RELEASES, client, "GET", "/api/releases",
        record_type=Release, query_fields=("stage",), params_type=ReleaseFilter,
    ))
    registry.register(HttpAction(
        names.LOAD_PIPELINES, client, "GET", "/api/pipelines",
        record_type=PipelineStep, query_fields=("release_id",), params_type=PipelineFilter,
    ))
    registry.register(HttpAction(
        names.LOAD_VALIDATIONS, client, "GET", "/api/validations",
        record_type=Validation, query_fields=("result",), params_type=ValidationFilter,
    ))
    registry.register(HttpAction(
        names.LOAD_INCIDENTS, client, "GET", "/api/incidents",
        record_type=Incident, query_fields=("severity", "status"), params_type=IncidentFilter,
    ))
    registry.register(HttpAction(
        names.CREATE_INCIDENT, client, "POST", "/api/incidents",
        record_type=Incident, params_type=IncidentCreate,
    ))
    registry.register(HttpAction(
        names.LOAD_METRICS, client, "GET", "/api/metrics",
        record_type=Metric, query_fields=("component",), params_type=MetricsFilter,
    ))
    registry.register(HttpAction(
        names.LOAD_METRICS_TIME_SERIES, client, "GET", "/api/metrics/timeseries",
        record_type=Metric, query_fields=("limit",), params_type=RecentFilter,
    ))
    return registry


# ── Private helpers ───────────────────────────────────────────────────────────

def _body(params: Any) -> dict:
    if isinstance(params, BaseModel):
        return params.model_dump(mode="json")
    if isinstance(params, Mapping):
        return dict(params)
    return {}


def _detail(response: httpx.Response) -> str:
    """Pull a readable message out of an error response.

    FastAPI returns {"detail": "..."} for HTTPException and
    {"detail": [{"loc": [...], "msg": "..."}, ...]} for validation errors.
    """
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None

    if isinstance(detail, list):
        messages = []
        for err in detail:
            loc = ".".join(str(part) for part in err.get("loc", []) if part != "body")
            messages.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
        return "; ".join(messages)
    if detail:
        return str(detail)
    return f"{response.status_code} {response.reason_phrase}".strip()
