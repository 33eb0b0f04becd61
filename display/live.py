"""Rich live display: one panel per session, updating in real time.

The display layer is fully decoupled from the sessions. It subscribes to an
asyncio.Queue of SessionEvents and renders them into a live terminal layout.
Sessions emit into the queue whether or not a display is attached.

Usage:
    events = asyncio.Queue()
    display = LiveDisplay()

    with display.make_live() as live:
        consumer = asyncio.create_task(display.consume(events, live))
        async with IncidentsView(actions, events=events) as view:
            await view.wait()
        await events.put(None)  # sentinel: tell consume() to stop
        await consumer
"""

import asyncio
from dataclasses import dataclass, field

from rich.columns import Columns
from rich.console import Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from schemas.events import EventType, SessionEvent

PANEL_WIDTH = 42
PANELS_PER_ROW = 3
MAX_MESSAGES = 4

# status -> (icon, colour)
STATUS_MARKS = {
    "idle": ("○", "dim"),
    "loading": ("●", "yellow"),
    "mutating": ("●", "yellow"),
    "success": ("✓", "green"),
    "error": ("✗", "red"),
}

# ── Per-session state ─────────────────────────────────────────────────────────


@dataclass
class _SessionState:
    """Mutable state for one session's panel."""
    name: str
    status: str = "idle"    # idle | loading | success | error | mutating
    epoch: int = 0
    elapsed_ms: float = 0.0
    messages: list[str] = field(default_factory=list)


# ── Display ───────────────────────────────────────────────────────────────────

class LiveDisplay:
    """Manages the Rich live layout and subscribes to the event queue.

    Panels are created on the first event from a session, in arrival order,
    unless names are given up front.

    Attributes:
        _states: Dict of session name -> _SessionState.
        _order:  Session names in first-seen order, which is the panel layout.
    """

    def __init__(self, session_names: list[str] | None = None) -> None:
        names = list(session_names or [])
        self._states = {name: _SessionState(name=name) for name in names}
        self._order = names

    def make_live(self) -> Live:
        """Return a Rich Live context manager ready to use with `with`."""
        return Live(self._render(), refresh_per_second=12, transient=False)

    async def consume(self, queue: asyncio.Queue, live: Live) -> None:
        """Read events from the queue and update the display until sentinel.

        Args:
            queue: The asyncio.Queue the sessions write SessionEvents into.
            live:  The active Rich Live context to update on each event.
        """
        while True:
            event = await queue.get()
            if event is None:
                break
            self.apply(event)
            live.update(self._render())

    def apply(self, event: SessionEvent) -> None:
        """Update the session state from an incoming event."""
        state = self._states.get(event.session_name)
        if state is None:
            state = _SessionState(name=event.session_name)
            self._states[event.session_name] = state
            self._order.append(event.session_name)

        state.elapsed_ms = event.timestamp_ms

        if event.event_type == EventType.LOAD_STARTED:
            state.status = "loading"
            state.epoch = event.epoch
            state.messages.append(f"epoch {event.epoch}: loading...")

        elif event.event_type == EventType.LOAD_SUCCEEDED:
            state.status = "success"
            state.messages.append(f"✓ epoch {event.epoch}: {event.message}")

        elif event.event_type == EventType.LOAD_FAILED:
            state.status = "error"
            state.messages.append(f"✗ epoch {event.epoch}: {event.message}")

        elif event.event_type == EventType.LOAD_DISCARDED:
            state.messages.append(f"↷ {event.message}")

        elif event.event_type == EventType.MUTATION_STARTED:
            state.status = "mutating"
            state.messages.append(f"→ {event.message}")

        elif event.event_type == EventType.MUTATION_SUCCEEDED:
            state.status = "success"
            state.messages.append("✓ submitted")

        elif event.event_type == EventType.MUTATION_FAILED:
            state.status = "error"
            state.messages.append(f"✗ {event.message}")

        state.messages = state.messages[-MAX_MESSAGES:]

    def status_of(self, session_name: str) -> str | None:
        state = self._states.get(session_name)
        return state.status if state else None

    # ── Private ───────────────────────────────────────────────────────────────

    def _render_panel(self, state: _SessionState) -> Panel:
        """Build a Rich Panel for one session from its current state."""
        icon, colour = STATUS_MARKS.get(state.status, ("○", "dim"))
        header = Text.assemble(
            (f"{icon} {state.status}", f"bold {colour}"),
            (f"  epoch {state.epoch}" if state.epoch else "", "cyan"),
            (f"  {state.elapsed_ms / 1000:.2f}s", "dim"),
        )
        body = Group(header, *(Text(f"  {msg}", style="dim") for msg in state.messages))
        return Panel(body, title=f"[bold]{state.name}[/bold]", border_style=colour, width=PANEL_WIDTH)

    def _render(self) -> Group:
        """Build the full layout: PANELS_PER_ROW panels per row."""
        panels = [self._render_panel(self._states[name]) for name in self._order]
        return Group(*(
            Columns(panels[i : i + PANELS_PER_ROW], equal=True)
            for i in range(0, len(panels), PANELS_PER_ROW)
        ))
