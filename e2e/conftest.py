"""Shared fixtures and test doubles.

GatedAction is the workhorse for ordering tests: every invoke() parks on a
future the test resolves explicitly, so a test decides exactly which response
arrives first.
"""

import asyncio

import pytest

from actions.base import ActionDescriptor
from ops.actions import build_local_actions
from ops.store import OpsStore


class GatedAction(ActionDescriptor):
    """Descriptor whose calls complete only when the test releases them."""

    name = "gated"

    def __init__(self) -> None:
        self.calls: list[tuple[object, asyncio.Future]] = []

    async def invoke(self, params):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((params, future))
        return await future

    def resolve(self, index: int, value) -> None:
        self.calls[index][1].set_result(value)

    def fail(self, index: int, exc: BaseException) -> None:
        self.calls[index][1].set_exception(exc)

    @property
    def params_sent(self) -> list:
        return [params for params, _ in self.calls]


class RecordingAction(ActionDescriptor):
    """Descriptor that records every params value and returns a fixed result."""

    name = "recording"

    def __init__(self, result=None, error: BaseException | None = None) -> None:
        self.result = [] if result is None else result
        self.error = error
        self.calls: list = []

    async def invoke(self, params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return self.result


async def settle(rounds: int = 5) -> None:
    """Let pending tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def gated():
    return GatedAction()


@pytest.fixture
def store():
    return OpsStore.from_fixture(metrics_seed=7)


@pytest.fixture
def actions(store):
    return build_local_actions(store)
