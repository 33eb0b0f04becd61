"""Tests for the HTTP action descriptors.

Error mapping is checked against httpx.MockTransport; the end-to-end tests
drive the real FastAPI app in-process through httpx.ASGITransport.
"""

import json

import httpx
import pytest

from actions.errors import NetworkError, RemoteError
from config import Settings
from core.load_session import bind
from core.mutation import MutationSession
from main import create_app
from ops import actions as names
from ops.client import build_http_actions, make_client
from schemas.ops import DashboardStats, Incident, IncidentFilter, Release
from schemas.session import LoadStatus


def mock_actions(handler):
    client = make_client("http://opsboard.test", transport=httpx.MockTransport(handler))
    return client, build_http_actions(client)


@pytest.fixture
async def asgi_actions(store):
    transport = httpx.ASGITransport(app=create_app(store=store, settings=Settings()))
    client = make_client("http://opsboard.test", transport=transport)
    yield build_http_actions(client)
    await client.aclose()


# ── Error mapping ─────────────────────────────────────────────────────────────

class TestErrorMapping:
    async def test_transport_error_becomes_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, actions = mock_actions(handler)
        with pytest.raises(NetworkError, match="ConnectError"):
            await actions.get(names.LOAD_INCIDENTS).invoke(None)
        await client.aclose()

    async def test_http_error_carries_detail(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Release not found"})

        client, actions = mock_actions(handler)
        with pytest.raises(RemoteError) as info:
            await actions.get(names.LOAD_PIPELINES).invoke({"release_id": 99})
        assert info.value.message == "Release not found"
        assert info.value.status_code == 404
        await client.aclose()

    async def test_validation_detail_is_flattened(self):
        def handler(request):
            return httpx.Response(422, json={"detail": [
                {"loc": ["body", "title"], "msg": "Value error, must not be empty"},
            ]})

        client, actions = mock_actions(handler)
        with pytest.raises(RemoteError, match="title: Value error, must not be empty"):
            await actions.get(names.CREATE_INCIDENT).invoke({"title": ""})
        await client.aclose()

    async def test_non_json_error_uses_status_line(self):
        def handler(request):
            return httpx.Response(503, text="upstream down")

        client, actions = mock_actions(handler)
        with pytest.raises(RemoteError, match="503"):
            await actions.get(names.LOAD_METRICS).invoke(None)
        await client.aclose()


# ── Requests ──────────────────────────────────────────────────────────────────

class TestRequests:
    async def test_query_omits_none_fields(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=[])

        client, actions = mock_actions(handler)
        await actions.get(names.LOAD_INCIDENTS).invoke(IncidentFilter(severity="high"))
        await client.aclose()

        assert seen[0].path == "/api/incidents"
        assert dict(seen[0].params) == {"severity": "high"}

    async def test_query_omits_unfiltered_values(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, json=[])

        client, actions = mock_actions(handler)
        await actions.get(names.LOAD_PIPELINES).invoke({"release_id": "all"})
        await actions.get(names.LOAD_INCIDENTS).invoke({"severity": "", "status": "open"})
        await client.aclose()

        assert dict(seen[0].params) == {}
        assert dict(seen[1].params) == {"status": "open"}

    async def test_post_sends_json_body(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={
                "id": 9, "title": "X", "severity": "high", "status": "open",
                "failure_mode": "boot_failure", "owner": "a@b.com",
                "created_at": "2024-10-20T00:00:00Z", "request_id": "req-1",
            })

        client, actions = mock_actions(handler)
        incident = await actions.get(names.CREATE_INCIDENT).invoke({"title": "X", "request_id": "req-1"})
        await client.aclose()

        assert bodies == [{"title": "X", "request_id": "req-1"}]
        assert isinstance(incident, Incident)


# ── End to end over ASGI ──────────────────────────────────────────────────────

class TestEndToEnd:
    async def test_records_are_parsed(self, asgi_actions):
        releases = await asgi_actions.get(names.LOAD_ALL_RELEASES).invoke({"stage": "all"})
        assert len(releases) == 6
        assert all(isinstance(r, Release) for r in releases)

        stats = await asgi_actions.get(names.LOAD_DASHBOARD_STATS).invoke(None)
        assert stats == [DashboardStats(total_releases=4, failed_pipelines=2,
                                        open_incidents=3, last_validation_pass=1)]

    async def test_all_release_matches_local_backend(self, asgi_actions, store):
        steps = await asgi_actions.get(names.LOAD_PIPELINES).invoke({"release_id": "all"})
        assert len(steps) == len(store.list_pipelines("all")) == 12

    async def test_session_over_http_empty_result_is_success(self, asgi_actions):
        session = bind(asgi_actions.get(names.LOAD_INCIDENTS),
                       IncidentFilter(severity="critical", status="open"))
        state = await session.wait()
        assert state.status == LoadStatus.SUCCESS
        assert state.data == []

    async def test_mutation_over_http(self, asgi_actions, store):
        creator = MutationSession(asgi_actions.get(names.CREATE_INCIDENT))
        outcome = await creator.submit({"title": "X", "severity": "high", "owner": "a@b.com"})

        assert outcome.ok
        assert outcome.value.request_id == outcome.token
        assert store.list_incidents("high", "open")[0].id == outcome.value.id

    async def test_rejected_mutation_over_http(self, asgi_actions):
        creator = MutationSession(asgi_actions.get(names.CREATE_INCIDENT))
        outcome = await creator.submit({"title": "", "owner": "a@b.com"})
        assert isinstance(outcome.error, RemoteError)
        assert outcome.error.status_code == 422
