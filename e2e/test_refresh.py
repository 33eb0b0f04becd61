"""Tests for the refresh coordinator."""

import asyncio

import pytest

from actions.errors import RemoteError
from conftest import RecordingAction
from core.load_session import bind
from core.mutation import MutationSession
from core.refresh import RefreshCoordinator
from ops.actions import CREATE_INCIDENT, LOAD_INCIDENTS
from schemas.ops import IncidentFilter
from schemas.session import LoadStatus


@pytest.fixture
def coordinator():
    return RefreshCoordinator()


class TestAfterSuccess:
    async def test_refresh_reinvokes_with_same_params(self, coordinator):
        loads = RecordingAction(result=[])
        session = bind(loads, {"severity": "high"})
        await session.wait()
        mutation = MutationSession(RecordingAction(result={"id": 1}))
        await mutation.submit({})

        tasks = coordinator.after_success(mutation, [session])
        await asyncio.gather(*tasks)

        assert loads.calls == [{"severity": "high"}, {"severity": "high"}]
        assert session.epoch == 2

    async def test_raises_when_mutation_failed(self, coordinator):
        session = bind(RecordingAction(result=[]), None)
        mutation = MutationSession(RecordingAction(error=RemoteError("rejected")))
        await mutation.submit({})

        with pytest.raises(ValueError, match="not 'success'"):
            coordinator.after_success(mutation, [session])

    async def test_raises_before_any_submission(self, coordinator):
        mutation = MutationSession(RecordingAction(result={}))
        with pytest.raises(ValueError):
            coordinator.after_success(mutation, [])

    async def test_closed_sessions_are_skipped(self, coordinator):
        open_loads, closed_loads = RecordingAction(result=[]), RecordingAction(result=[])
        live = bind(open_loads, None)
        gone = bind(closed_loads, None)
        await live.wait()
        await gone.wait()
        gone.close()
        mutation = MutationSession(RecordingAction(result={}))
        await mutation.submit({})

        tasks = coordinator.after_success(mutation, [gone, live])

        assert len(tasks) == 1
        await tasks[0]
        assert len(open_loads.calls) == 2
        assert len(closed_loads.calls) == 1

    async def test_create_then_refresh_shows_new_incident(self, coordinator, actions):
        incidents = bind(
            actions.get(LOAD_INCIDENTS),
            IncidentFilter(severity="high", status="open"),
        )
        before = await incidents.wait()
        creator = MutationSession(actions.get(CREATE_INCIDENT))

        outcome = await creator.submit({"title": "X", "severity": "high", "owner": "a@b.com"})
        tasks = coordinator.after_success(creator, [incidents])
        assert incidents.status == LoadStatus.LOADING
        assert incidents.data == before.data
        await asyncio.gather(*tasks)

        after = incidents.state()
        assert after.status == LoadStatus.SUCCESS
        assert after.epoch == before.epoch + 1
        assert outcome.value.id in [i.id for i in after.data]
        assert len(after.data) == len(before.data) + 1
