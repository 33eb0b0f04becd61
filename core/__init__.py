"""Reactive data-action layer: load sessions, mutation sessions, refresh."""

from core.load_session import LoadSession, bind
from core.mutation import MutationSession, new_idempotency_token
from core.params import ParameterTracker, freeze
from core.refresh import RefreshCoordinator
from core.registry import ActionRegistry

__all__ = [
    "ActionRegistry",
    "LoadSession",
    "MutationSession",
    "ParameterTracker",
    "RefreshCoordinator",
    "bind",
    "freeze",
    "new_idempotency_token",
]
