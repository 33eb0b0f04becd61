"""Load session state machine.

A LoadSession binds one action descriptor to a parameter value that changes
over the lifetime of a view. It owns the lifecycle of the load:

    idle ──bind──> loading ──success(epoch)──> success
                           ──failure(epoch)──> error
    success | error ──params changed / refresh──> loading (epoch + 1)

Every invocation gets a new epoch. A response is committed only if its epoch
is still the session's current epoch — an older, slower response arriving
after a newer request was issued is dropped silently. That comparison is the
only protection against out-of-order completion: in-flight operations are
never cancelled, they are allowed to finish and are ignored.

Discarding instead of cancelling assumes load actions have no side effects
beyond returning data. Actions with side effects must not be driven through
a LoadSession.

Data policy (the same for every session): the previous data stays visible
while a new invocation is loading and after it fails. The previous error is
cleared as soon as a new invocation starts. Views that prefer to blank the
table while loading do so at render time.
"""

import asyncio
import logging
import time
from typing import Any, Callable

from actions.base import ActionDescriptor
from actions.errors import ActionError
from core.params import ParameterTracker
from schemas.events import EventType, SessionEvent
from schemas.session import LoadState, LoadStatus

logger = logging.getLogger(__name__)


class LoadSession:
    """Stateful binding of a descriptor to a changing parameter value.

    Sessions are driven by explicit events from the owning view-controller:
    set_params() when a filter changes, refresh() after a mutation, close()
    when the view is torn down. Each invocation runs as its own asyncio task
    on the running loop; the session keeps a reference to every in-flight
    task until it finishes.

    Attributes:
        name: Label used in logs and session events. Defaults to the
            descriptor name.
    """

    def __init__(
        self,
        descriptor: ActionDescriptor,
        *,
        name: str | None = None,
        events: asyncio.Queue | None = None,
    ) -> None:
        """Create an idle session. Nothing is sent until set_params().

        Args:
            descriptor: The load action this session invokes.
            name: Optional label for logs and events.
            events: Optional queue to emit SessionEvents into. If None,
                events are skipped.
        """
        self._descriptor = descriptor
        self.name = name or descriptor.name
        self._events = events
        self._tracker = ParameterTracker()

        self._status = LoadStatus.IDLE
        self._data: list[Any] = []
        self._error: ActionError | None = None
        self._epoch = 0
        self._closed = False

        self._latest: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._created = time.perf_counter()

    # ── Read side ─────────────────────────────────────────────────────────────

    @property
    def descriptor(self) -> ActionDescriptor:
        return self._descriptor

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def data(self) -> list[Any]:
        return list(self._data)

    @property
    def loading(self) -> bool:
        return self._status == LoadStatus.LOADING

    @property
    def error(self) -> ActionError | None:
        return self._error

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def params(self) -> Any:
        return self._tracker.last_sent

    @property
    def closed(self) -> bool:
        return self._closed

    def state(self) -> LoadState:
        """Return an immutable snapshot of the current state."""
        return LoadState(
            status=self._status,
            data=list(self._data),
            error=self._error,
            epoch=self._epoch,
            params=self._tracker.last_sent,
        )

    def handle(self) -> tuple[list[Any], bool, ActionError | None, Callable[[], asyncio.Task]]:
        """Return the (data, loading, error, refresh) tuple views consume."""
        return self.data, self.loading, self._error, self.refresh

    # ── Change events ─────────────────────────────────────────────────────────

    def set_params(self, params: Any) -> bool:
        """Report the parameter value the owning view currently holds.

        Re-invokes the descriptor only if params differs structurally from
        the last value sent. Calling this on every render with an equal
        value is cheap and sends nothing.

        Args:
            params: The current parameter value. Treated as opaque — an
                "all" sentinel is passed through for the action to
                interpret.

        Returns:
            True if a new invocation was issued, False if params was
            unchanged.

        Raises:
            RuntimeError: If the session has been closed, or if no asyncio
                event loop is running.
        """
        self._ensure_open()
        asyncio.get_running_loop()
        if not self._tracker.observe(params):
            logger.debug("Session '%s': params unchanged, not reloading.", self.name)
            return False
        self._invoke(self._tracker.last_sent)
        return True

    def refresh(self) -> asyncio.Task:
        """Re-invoke with the current params under a new epoch.

        Returns:
            The task running the new invocation. Awaiting it is optional.

        Raises:
            RuntimeError: If the session is closed or has never been bound.
        """
        self._ensure_open()
        if not self._tracker.has_sent:
            raise RuntimeError(f"Session '{self.name}' has no bound params to refresh.")
        return self._invoke(self._tracker.last_sent)

    def close(self) -> None:
        """Tear the session down. Late completions become no-ops.

        Advancing the epoch means no in-flight response can match it again.
        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._epoch += 1
        logger.debug(
            "Session '%s' closed with %d invocation(s) in flight.",
            self.name,
            len(self._in_flight),
        )

    async def wait(self) -> LoadState:
        """Wait until the most recent invocation has settled.

        If a newer invocation starts while waiting, waits for that one too.

        Returns:
            The state snapshot after the latest invocation settled.
        """
        while self._latest is not None and not self._latest.done():
            await self._latest
        return self.state()

    # ── Private helpers ───────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Session '{self.name}' is closed.")

    def _invoke(self, params: Any) -> asyncio.Task:
        """Start a new invocation under the next epoch."""
        loop = asyncio.get_running_loop()

        self._epoch += 1
        epoch = self._epoch
        self._status = LoadStatus.LOADING
        self._error = None

        logger.debug("Session '%s' epoch %d: invoking %r.", self.name, epoch, params)
        self._emit(EventType.LOAD_STARTED, epoch, "loading...")

        task = loop.create_task(self._run(epoch, params), name=f"{self.name}#{epoch}")
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        self._latest = task
        return task

    async def _run(self, epoch: int, params: Any) -> None:
        """Invoke the descriptor and settle the result under the epoch guard.

        This coroutine never raises an ActionError or any other Exception:
        every failure is captured into session state.
        """
        try:
            result = await self._descriptor.invoke(params)
        except ActionError as exc:
            self._settle_failure(epoch, exc)
        except Exception as exc:
            logger.error(
                "Session '%s' epoch %d: action '%s' raised unexpectedly.",
                self.name,
                epoch,
                self._descriptor.name,
                exc_info=True,
            )
            self._settle_failure(epoch, ActionError.from_exception(exc))
        else:
            self._settle_success(epoch, result)

    def _settle_success(self, epoch: int, result: Any) -> None:
        if not self._is_current(epoch):
            self._discard(epoch)
            return
        self._data = _as_list(result)
        self._status = LoadStatus.SUCCESS
        count = len(self._data)
        noun = "record" if count == 1 else "records"
        self._emit(EventType.LOAD_SUCCEEDED, epoch, f"{count} {noun}")

    def _settle_failure(self, epoch: int, error: ActionError) -> None:
        if not self._is_current(epoch):
            self._discard(epoch)
            return
        self._error = error
        self._status = LoadStatus.ERROR
        logger.warning("Session '%s' epoch %d failed: %s", self.name, epoch, error.message)
        self._emit(EventType.LOAD_FAILED, epoch, error.message)

    def _is_current(self, epoch: int) -> bool:
        return not self._closed and epoch == self._epoch

    def _discard(self, epoch: int) -> None:
        logger.debug(
            "Session '%s': dropping stale response for epoch %d (current %d).",
            self.name,
            epoch,
            self._epoch,
        )
        if not self._closed:
            self._emit(EventType.LOAD_DISCARDED, epoch, f"stale epoch {epoch} dropped")

    def _emit(self, event_type: EventType, epoch: int, message: str) -> None:
        if self._events is None:
            return
        self._events.put_nowait(SessionEvent(
            session_name=self.name,
            event_type=event_type,
            epoch=epoch,
            message=message,
            timestamp_ms=(time.perf_counter() - self._created) * 1000,
        ))

    def __repr__(self) -> str:
        return f"<LoadSession {self.name} {self._status.value} epoch={self._epoch}>"


def bind(
    descriptor: ActionDescriptor,
    params: Any = None,
    *,
    name: str | None = None,
    events: asyncio.Queue | None = None,
) -> LoadSession:
    """Create a session for descriptor and issue the first invocation.

    Must be called while an asyncio event loop is running.

    Args:
        descriptor: The load action to bind.
        params: Initial parameter value.
        name: Optional label for logs and events.
        events: Optional SessionEvent queue.

    Returns:
        The new session, already in the loading state.
    """
    session = LoadSession(descriptor, name=name, events=events)
    session.set_params(params)
    return session


def _as_list(result: Any) -> list[Any]:
    """Normalise an action result into an ordered list of records."""
    if result is None:
        return []
    if isinstance(result, (list, tuple)):
        return list(result)
    return [result]
