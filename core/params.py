"""Parameter reactivity tracker.

Decides whether a newly observed parameter value should trigger a fresh
load: re-invoke if and only if the new value is structurally different
from the value last *sent*. Re-observing an equal value, including a
freshly built object with the same fields, never triggers a request.

Comparing against what was sent (not what was last observed) makes rapid
changes collapse correctly: A -> B -> A sends A, then B, then A again,
because each step differs from the request actually in flight.
"""

import copy
import dataclasses
from collections.abc import Mapping, Set
from typing import Any

from pydantic import BaseModel

_UNSENT = object()


def freeze(value: Any) -> Any:
    """Convert a parameter value into an immutable, structurally comparable form.

    Pydantic models and dataclasses are reduced to their type name plus
    their frozen fields, so two filters of different types never compare
    equal even when their fields match. Mappings become sorted tuples of
    pairs keyed on the original keys; sequences become tuples; sets become
    frozensets. Scalars are returned as-is.

    Args:
        value: Any parameter value a view binds to a load session.

    Returns:
        A value whose == is structural and unaffected by later mutation of
        the original object.
    """
    if isinstance(value, BaseModel):
        return (type(value).__name__, freeze(value.model_dump()))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return (type(value).__name__, freeze(dataclasses.asdict(value)))
    if isinstance(value, Mapping):
        pairs = ((k, freeze(v)) for k, v in value.items())
        return tuple(sorted(pairs, key=_key_order))
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, Set):
        return frozenset(freeze(v) for v in value)
    return value


def _key_order(pair: tuple[Any, Any]) -> tuple[str, str]:
    key = pair[0]
    return type(key).__name__, repr(key)


class ParameterTracker:
    """Tracks the last parameter value sent for one load session.

    One tracker belongs to exactly one LoadSession and lives as long as it
    does. It holds no reference to the descriptor; it only answers "is this
    a genuine change?".
    """

    def __init__(self) -> None:
        self._last_sent: Any = _UNSENT
        self._last_frozen: Any = _UNSENT

    @property
    def has_sent(self) -> bool:
        return self._last_sent is not _UNSENT

    @property
    def last_sent(self) -> Any:
        """The parameter value used for the most recent invocation, or None."""
        return None if self._last_sent is _UNSENT else self._last_sent

    def observe(self, params: Any) -> bool:
        """Record an observed parameter value and report whether to re-invoke.

        A deep copy of params is kept, so mutating the caller's object
        afterwards changes neither the comparison nor what refresh() sends.

        Args:
            params: The parameter value the owning view currently holds.

        Returns:
            True if nothing has been sent yet or params differs structurally
            from the last sent value. In that case params becomes the new
            last-sent value. False otherwise, with no state change.
        """
        frozen = freeze(params)
        if self._last_frozen is not _UNSENT and frozen == self._last_frozen:
            return False
        self._last_sent = copy.deepcopy(params)
        self._last_frozen = frozen
        return True
