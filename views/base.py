"""View-controller base class.

A view-controller is the explicit owner of one page's state: its filter
selections (plain fields) and the load sessions bound to them. It has a
defined lifecycle:

    construct ──open()──> sessions bound, first loads in flight
              ──close()─> every session closed, late results ignored

Controllers are also async context managers, so a page can be scoped with
`async with IncidentsView(actions) as view: ...`. open() must run on the
event loop because binding a session starts its first load.
"""

import asyncio
import logging
from typing import Any

from core.load_session import LoadSession, bind
from core.registry import ActionRegistry

logger = logging.getLogger(__name__)


class ViewController:
    """Base class for page controllers.

    Subclasses implement _on_open() to bind their sessions with self._load().

    Attributes:
        title: Page heading.
        subtitle: One-line page description.
    """

    title = ""
    subtitle = ""

    def __init__(self, actions: ActionRegistry, *, events: asyncio.Queue | None = None) -> None:
        """Create a closed controller.

        Args:
            actions: Registry the controller looks its descriptors up in.
            events: Optional SessionEvent queue shared by all sessions this
                controller binds.
        """
        self._actions = actions
        self._events = events
        self._sessions: list[LoadSession] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def sessions(self) -> list[LoadSession]:
        return list(self._sessions)

    def open(self) -> None:
        """Bind the page's sessions and start their first loads."""
        if self._open:
            return
        self._open = True
        self._on_open()
        logger.info("Opened %s with %d session(s).", type(self).__name__, len(self._sessions))

    def close(self) -> None:
        """Close every session. In-flight responses will be discarded."""
        if not self._open:
            return
        for session in self._sessions:
            session.close()
        self._sessions.clear()
        self._open = False
        logger.info("Closed %s.", type(self).__name__)

    async def wait(self) -> None:
        """Wait until every session's latest load has settled."""
        await asyncio.gather(*(session.wait() for session in self._sessions))

    async def __aenter__(self) -> "ViewController":
        self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Subclass hooks ────────────────────────────────────────────────────────

    def _on_open(self) -> None:
        raise NotImplementedError

    def _load(self, action_name: str, params: Any = None, *, name: str | None = None) -> LoadSession:
        """Bind a session for action_name and track it for close()."""
        session = bind(self._actions.get(action_name), params, name=name, events=self._events)
        self._sessions.append(session)
        return session

    def _rebind(self, session: LoadSession | None, params: Any) -> bool:
        """Forward a filter change to session if the view is open."""
        if not self._open or session is None:
            return False
        return session.set_params(params)
