"""Session state schemas.

Status enums and the snapshot objects the core sessions hand to views.
These are dataclasses rather than Pydantic models because they are internal
runtime objects — they carry arbitrary record types and ActionError
instances, and are never serialized or validated from external input.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from actions.errors import ActionError


class LoadStatus(str, Enum):
    """Lifecycle of a load session.

    Extends str so values log and render as plain strings ("loading").

    Values:
        IDLE: Constructed, nothing sent yet.
        LOADING: An invocation is in flight for the current epoch.
        SUCCESS: The current epoch's invocation returned data.
        ERROR: The current epoch's invocation failed.
    """

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class MutationStatus(str, Enum):
    """Lifecycle of a mutation session."""

    IDLE = "idle"
    MUTATING = "mutating"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class LoadState:
    """Immutable snapshot of a load session at one moment.

    Attributes:
        status: Current lifecycle stage.
        data: Records from the last committed response, in arrival order.
            Stays populated while a newer invocation is loading and after
            it fails.
        error: Failure of the current epoch, or None.
        epoch: Epoch of the most recent invocation (0 before the first).
        params: Parameter value last sent to the descriptor.
    """

    status: LoadStatus
    data: list[Any] = field(default_factory=list)
    error: ActionError | None = None
    epoch: int = 0
    params: Any = None

    @property
    def loading(self) -> bool:
        return self.status == LoadStatus.LOADING


@dataclass
class MutationOutcome:
    """Result of one MutationSession.submit() call.

    Attributes:
        token: Idempotency token sent with this submission.
        value: Whatever the descriptor returned. None on failure.
        error: The captured failure, or None on success.
    """

    token: str
    value: Any = None
    error: ActionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
