"""Session event schema.

Sessions emit events as they move through their lifecycle so the display
layer can render a live view of what is loading. The sessions and the display
layer are decoupled — a session works the same whether or not anything is
reading its event queue.
"""

from enum import Enum

from pydantic import BaseModel


class EventType(str, Enum):
    """Lifecycle moments a session can emit events for.

    Values:
        LOAD_STARTED: A load invocation was issued (new epoch).
        LOAD_SUCCEEDED: The current epoch's response was committed.
        LOAD_FAILED: The current epoch's invocation failed.
        LOAD_DISCARDED: A response arrived for a superseded epoch and was
            dropped.
        MUTATION_STARTED: A submission was sent with a fresh token.
        MUTATION_SUCCEEDED: The submission succeeded.
        MUTATION_FAILED: The submission failed.
    """

    LOAD_STARTED = "load_started"
    LOAD_SUCCEEDED = "load_succeeded"
    LOAD_FAILED = "load_failed"
    LOAD_DISCARDED = "load_discarded"
    MUTATION_STARTED = "mutation_started"
    MUTATION_SUCCEEDED = "mutation_succeeded"
    MUTATION_FAILED = "mutation_failed"


class SessionEvent(BaseModel):
    """A single event emitted by a load or mutation session.

    Attributes:
        session_name: Name of the emitting session. Maps to the panel
            heading in the live display.
        event_type: Lifecycle moment this event represents.
        epoch: Epoch of the load invocation concerned. 0 for mutations.
        message: Human-readable detail ("12 records", the error text, the
            idempotency token).
        timestamp_ms: Milliseconds since the session was created.
    """

    session_name: str
    event_type: EventType
    epoch: int = 0
    message: str = ""
    timestamp_ms: float
