"""Tests for the load session state machine.

Ordering tests use GatedAction so each test decides which response arrives
first. No network and no store are involved.
"""

import asyncio

import pytest

from actions.errors import ActionError, NetworkError
from conftest import GatedAction, RecordingAction, settle
from core.load_session import LoadSession, bind
from schemas.events import EventType
from schemas.ops import IncidentFilter
from schemas.session import LoadStatus


# ── Lifecycle ─────────────────────────────────────────────────────────────────

class TestLifecycle:
    def test_starts_idle(self, gated):
        session = LoadSession(gated)
        assert session.status == LoadStatus.IDLE
        assert session.data == []
        assert session.epoch == 0
        assert session.error is None

    async def test_bind_moves_to_loading(self, gated):
        session = bind(gated, {"component": "kernel"})
        assert session.status == LoadStatus.LOADING
        assert session.loading is True
        assert session.epoch == 1

    async def test_success_commits_data(self, gated):
        session = bind(gated, None)
        await settle()
        gated.resolve(0, ["a", "b"])
        state = await session.wait()
        assert state.status == LoadStatus.SUCCESS
        assert state.data == ["a", "b"]

    async def test_failure_captures_error(self, gated):
        session = bind(gated, None)
        await settle()
        gated.fail(0, NetworkError("connection refused"))
        state = await session.wait()
        assert state.status == LoadStatus.ERROR
        assert state.error.message == "connection refused"

    async def test_unexpected_exception_is_wrapped_not_raised(self, gated):
        session = bind(gated, None)
        await settle()
        gated.fail(0, RuntimeError("boom"))
        state = await session.wait()
        assert state.status == LoadStatus.ERROR
        assert isinstance(state.error, ActionError)
        assert state.error.message == "boom"

    async def test_empty_result_is_success_not_error(self):
        session = bind(RecordingAction(result=[]), None)
        state = await session.wait()
        assert state.status == LoadStatus.SUCCESS
        assert state.data == []
        assert state.error is None

    async def test_single_entity_becomes_one_element_list(self):
        session = bind(RecordingAction(result={"id": 1}), None)
        state = await session.wait()
        assert state.data == [{"id": 1}]

    async def test_none_result_becomes_empty_list(self):
        action = RecordingAction()
        action.result = None
        session = bind(action, None)
        assert (await session.wait()).data == []

    async def test_handle_returns_data_loading_error_refresh(self):
        session = bind(RecordingAction(result=[1]), None)
        await session.wait()
        data, loading, error, refresh = session.handle()
        assert data == [1]
        assert loading is False
        assert error is None
        assert refresh == session.refresh

    def test_bind_without_running_loop_raises(self, gated):
        with pytest.raises(RuntimeError):
            bind(gated, None)

    def test_set_params_without_loop_leaves_params_unsent(self):
        action = RecordingAction(result=[1])
        session = LoadSession(action)
        with pytest.raises(RuntimeError):
            session.set_params("A")
        assert session.params is None
        assert session.status == LoadStatus.IDLE

        async def retry():
            assert session.set_params("A") is True
            return await session.wait()

        state = asyncio.run(retry())
        assert action.calls == ["A"]
        assert state.status == LoadStatus.SUCCESS


# ── Parameter changes ─────────────────────────────────────────────────────────

class TestParameterChanges:
    async def test_identical_params_do_not_reinvoke(self):
        action = RecordingAction(result=[])
        session = bind(action, IncidentFilter(severity="high", status="open"))
        await session.wait()

        reloaded = session.set_params(IncidentFilter(severity="high", status="open"))

        await settle()
        assert reloaded is False
        assert len(action.calls) == 1
        assert session.epoch == 1

    async def test_changed_params_reinvoke_with_new_epoch(self):
        action = RecordingAction(result=[])
        session = bind(action, {"component": "kernel"})
        await session.wait()

        assert session.set_params({"component": "driver"}) is True
        await session.wait()

        assert action.calls == [{"component": "kernel"}, {"component": "driver"}]
        assert session.epoch == 2
        assert session.params == {"component": "driver"}

    async def test_all_sentinel_is_passed_through_untouched(self):
        action = RecordingAction(result=[])
        session = bind(action, {"severity": "all"})
        await session.wait()
        assert action.calls == [{"severity": "all"}]

    async def test_new_invocation_clears_previous_error(self, gated):
        session = bind(gated, "A")
        await settle()
        gated.fail(0, ActionError("bad"))
        await session.wait()

        session.set_params("B")
        assert session.status == LoadStatus.LOADING
        assert session.error is None


# ── Out-of-order completion ───────────────────────────────────────────────────

class TestStaleResponses:
    async def test_late_response_from_old_epoch_is_discarded(self, gated):
        session = bind(gated, "A")                 # epoch 1
        await settle()
        session.set_params("B")                    # epoch 2
        await settle()

        gated.resolve(0, ["from A"])
        await settle()
        assert session.status == LoadStatus.LOADING
        assert session.data == []

        gated.resolve(1, ["from B"])
        state = await session.wait()
        assert state.status == LoadStatus.SUCCESS
        assert state.data == ["from B"]
        assert state.epoch == 2

    async def test_old_response_arriving_after_new_one_does_not_overwrite(self, gated):
        session = bind(gated, "A")
        await settle()
        session.set_params("B")
        await settle()

        gated.resolve(1, ["from B"])
        await session.wait()
        gated.resolve(0, ["from A"])
        await settle()

        assert session.data == ["from B"]
        assert session.status == LoadStatus.SUCCESS

    async def test_stale_failure_is_discarded_silently(self, gated):
        session = bind(gated, "A")
        await settle()
        session.set_params("B")
        await settle()

        gated.fail(0, NetworkError("old request died"))
        await settle()
        assert session.error is None
        assert session.status == LoadStatus.LOADING

    async def test_rapid_changes_commit_only_the_last(self, gated):
        session = bind(gated, 1)
        await settle()
        for value in (2, 3, 4):
            session.set_params(value)
        await settle()

        # Resolve in reverse order of issue.
        for index in reversed(range(4)):
            gated.resolve(index, [f"p{gated.params_sent[index]}"])
        await session.wait()
        await settle()

        assert session.data == ["p4"]
        assert session.epoch == 4

    async def test_discard_emits_event(self, gated):
        events: asyncio.Queue = asyncio.Queue()
        session = bind(gated, "A", events=events)
        await settle()
        session.set_params("B")
        await settle()
        gated.resolve(0, [])
        await settle()

        types = []
        while not events.empty():
            types.append(events.get_nowait().event_type)
        assert EventType.LOAD_DISCARDED in types


# ── Data policy ───────────────────────────────────────────────────────────────

class TestDataPolicy:
    async def test_previous_data_visible_while_loading(self, gated):
        session = bind(gated, "A")
        await settle()
        gated.resolve(0, ["old"])
        await session.wait()

        session.set_params("B")
        assert session.loading is True
        assert session.data == ["old"]

    async def test_failed_load_keeps_previous_data_in_every_session(self):
        # The policy is the same for every session: a failure after a
        # success leaves the last committed data in place.
        first, second = GatedAction(), GatedAction()
        sessions = [bind(first, "x"), bind(second, "y")]
        await settle()
        first.resolve(0, ["one"])
        second.resolve(0, ["two"])
        for s in sessions:
            await s.wait()

        sessions[0].refresh()
        sessions[1].set_params("z")
        await settle()
        first.fail(1, ActionError("down"))
        second.fail(1, ActionError("down"))
        states = [await s.wait() for s in sessions]

        assert [s.status for s in states] == [LoadStatus.ERROR, LoadStatus.ERROR]
        assert [s.data for s in states] == [["one"], ["two"]]


# ── Refresh and close ─────────────────────────────────────────────────────────

class TestRefreshAndClose:
    async def test_refresh_reuses_params_with_new_epoch(self):
        action = RecordingAction(result=[])
        session = bind(action, {"severity": "high"})
        await session.wait()

        await session.refresh()

        assert action.calls == [{"severity": "high"}, {"severity": "high"}]
        assert session.epoch == 2

    async def test_refresh_sends_params_as_bound(self):
        action = RecordingAction(result=[])
        params = {"component": "kernel"}
        session = bind(action, params)
        await session.wait()

        params["component"] = "driver"
        await session.refresh()

        assert action.calls[-1] == {"component": "kernel"}
        assert session.params == {"component": "kernel"}

    async def test_refresh_before_bind_raises(self, gated):
        session = LoadSession(gated)
        with pytest.raises(RuntimeError, match="no bound params"):
            session.refresh()

    async def test_closed_session_ignores_late_response(self, gated):
        session = bind(gated, "A")
        await settle()
        session.close()

        gated.resolve(0, ["late"])
        await settle()

        assert session.data == []
        assert session.status == LoadStatus.LOADING

    async def test_closed_session_rejects_new_params(self, gated):
        session = bind(gated, "A")
        session.close()
        with pytest.raises(RuntimeError, match="closed"):
            session.set_params("B")

    async def test_close_is_idempotent(self, gated):
        session = bind(gated, "A")
        session.close()
        epoch = session.epoch
        session.close()
        assert session.epoch == epoch

    async def test_events_follow_lifecycle(self):
        events: asyncio.Queue = asyncio.Queue()
        session = bind(RecordingAction(result=[1, 2]), None, name="numbers", events=events)
        await session.wait()

        started = events.get_nowait()
        finished = events.get_nowait()
        assert started.event_type == EventType.LOAD_STARTED
        assert finished.event_type == EventType.LOAD_SUCCEEDED
        assert finished.session_name == "numbers"
        assert finished.message == "2 records"
