"""Mutation session.

A MutationSession performs one write per logical user intent. Every submit()
generates a fresh idempotency token and sends it inside the payload, so the
server can collapse repeated physical deliveries of the same submission (a
transport retry, a duplicated request) into one effect.

Lifecycle:
    idle ──submit──> mutating ──ok──> success
                              ──err─> error
    success | error ──submit──> mutating (new token)

A failed submission is never retried here. The only way to try again is a
new submit(), which gets a new token.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from actions.base import ActionDescriptor
from actions.errors import ActionError
from schemas.events import EventType, SessionEvent
from schemas.session import MutationOutcome, MutationStatus

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FIELD = "request_id"


def new_idempotency_token() -> str:
    """Return a fresh token of the form req-<epoch ms>-<random hex>."""
    return f"req-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


class MutationSession:
    """Owns the submissions of one form or dialog.

    Caller obligation: the session does not lock or coalesce concurrent
    submissions. A second submit() while the first is still mutating starts
    an independent mutation with its own token, and status reflects
    whichever settles last. Views must disable the triggering control while
    `mutating` is True.

    Attributes:
        name: Label used in logs and events. Defaults to the descriptor name.
        token_field: Payload key the idempotency token is written to.
    """

    def __init__(
        self,
        descriptor: ActionDescriptor,
        *,
        name: str | None = None,
        token_field: str = DEFAULT_TOKEN_FIELD,
        token_factory: Callable[[], str] = new_idempotency_token,
        events: asyncio.Queue | None = None,
    ) -> None:
        self._descriptor = descriptor
        self.name = name or descriptor.name
        self.token_field = token_field
        self._token_factory = token_factory
        self._events = events

        self._status = MutationStatus.IDLE
        self._token: str | None = None
        self._error: ActionError | None = None
        self._created = time.perf_counter()

    @property
    def status(self) -> MutationStatus:
        return self._status

    @property
    def mutating(self) -> bool:
        return self._status == MutationStatus.MUTATING

    @property
    def token(self) -> str | None:
        """Token of the most recent submission, or None before the first."""
        return self._token

    @property
    def error(self) -> ActionError | None:
        return self._error

    def handle(self) -> tuple[Callable[[Any], Awaitable[MutationOutcome]], bool]:
        """Return the (submit, mutating) pair views consume."""
        return self.submit, self.mutating

    async def submit(self, payload: Any) -> MutationOutcome:
        """Send payload once with a fresh idempotency token.

        Args:
            payload: A mapping or Pydantic model. It is copied; the token is
                added under token_field, overriding any value already there.

        Returns:
            A MutationOutcome. Failures are captured in it and in the
            session's error; they are not raised. Cancellation is re-raised
            after the session is marked failed.
        """
        token = self._token_factory()
        body = _payload_dict(payload)
        body[self.token_field] = token

        self._token = token
        self._error = None
        self._status = MutationStatus.MUTATING
        logger.info("Mutation '%s' submitting with token %s.", self.name, token)
        self._emit(EventType.MUTATION_STARTED, token)

        try:
            value = await self._descriptor.invoke(body)
        except asyncio.CancelledError:
            self._fail(token, ActionError("Submission cancelled."))
            raise
        except ActionError as exc:
            return self._fail(token, exc)
        except Exception as exc:
            logger.error(
                "Mutation '%s' action '%s' raised unexpectedly.",
                self.name,
                self._descriptor.name,
                exc_info=True,
            )
            return self._fail(token, ActionError.from_exception(exc))

        self._status = MutationStatus.SUCCESS
        self._emit(EventType.MUTATION_SUCCEEDED, token)
        return MutationOutcome(token=token, value=value)

    # ── Private helpers ───────────────────────────────────────────────────────

    def _fail(self, token: str, error: ActionError) -> MutationOutcome:
        self._status = MutationStatus.ERROR
        self._error = error
        logger.warning("Mutation '%s' (token %s) failed: %s", self.name, token, error.message)
        self._emit(EventType.MUTATION_FAILED, error.message)
        return MutationOutcome(token=token, error=error)

    def _emit(self, event_type: EventType, message: str) -> None:
        if self._events is None:
            return
        self._events.put_nowait(SessionEvent(
            session_name=self.name,
            event_type=event_type,
            message=message,
            timestamp_ms=(time.perf_counter() - self._created) * 1000,
        ))

    def __repr__(self) -> str:
        return f"<MutationSession {self.name} {self._status.value}>"


def _payload_dict(payload: Any) -> dict:
    if isinstance(payload, BaseModel):
        return payload.model_dump()
    return dict(payload or {})
