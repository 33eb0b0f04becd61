"""Incident and on-call page.

Besides the filtered incident list, this page owns the "Create Incident"
dialog. The dialog's MutationSession lives exactly as long as the dialog:
opening the dialog creates it, closing the dialog drops it.

Submit flow:
    1. MutationSession.submit() sends the form with a fresh request_id
    2. on success, the RefreshCoordinator re-runs the incidents session with
       its current filters so the new incident shows up if it matches
    3. the dialog closes and the form resets
On failure the dialog stays open with the error so the user can correct the
form and submit again (with a new token).
"""

import asyncio
import logging
from dataclasses import asdict, dataclass

from core.mutation import MutationSession
from core.refresh import RefreshCoordinator
from ops.actions import CREATE_INCIDENT, LOAD_INCIDENTS
from schemas.ops import IncidentFilter
from schemas.session import MutationOutcome
from views.base import ViewController

logger = logging.getLogger(__name__)


@dataclass
class IncidentForm:
    """Fields of the create dialog, with the dialog's defaults."""

    title: str = ""
    severity: str = "medium"
    failure_mode: str = "kernel_regression"
    owner: str = ""


class IncidentsView(ViewController):
    """Filtered incident list plus the create dialog.

    Attributes:
        severity_filter: Selected severity, "" or "all" for every severity.
        status_filter: Selected status, "" or "all" for every status.
        dialog_open: Whether the create dialog is showing.
        form: Current dialog field values.
        creator: The dialog's MutationSession, None while it is closed.
    """

    title = "Incident & On-Call View"
    subtitle = "Track and manage system incidents and failure modes"

    def __init__(
        self,
        actions,
        *,
        events: asyncio.Queue | None = None,
        refresher: RefreshCoordinator | None = None,
        severity: str = "",
        status: str = "",
    ) -> None:
        super().__init__(actions, events=events)
        self._refresher = refresher or RefreshCoordinator()
        self.severity_filter = severity
        self.status_filter = status
        self.incidents = None

        self.dialog_open = False
        self.form = IncidentForm()
        self.creator: MutationSession | None = None

    def _on_open(self) -> None:
        self.incidents = self._load(LOAD_INCIDENTS, self._params(), name="incidents")

    def close(self) -> None:
        self.close_dialog()
        super().close()

    # ── Filters ───────────────────────────────────────────────────────────────

    def set_severity_filter(self, severity: str) -> bool:
        self.severity_filter = severity
        return self._rebind(self.incidents, self._params())

    def set_status_filter(self, status: str) -> bool:
        self.status_filter = status
        return self._rebind(self.incidents, self._params())

    def _params(self) -> IncidentFilter:
        return IncidentFilter(severity=self.severity_filter, status=self.status_filter)

    # ── Create dialog ─────────────────────────────────────────────────────────

    def open_dialog(self) -> None:
        if self.dialog_open:
            return
        self.dialog_open = True
        self.form = IncidentForm()
        self.creator = MutationSession(
            self._actions.get(CREATE_INCIDENT), name="create_incident", events=self._events,
        )

    def close_dialog(self) -> None:
        self.dialog_open = False
        self.creator = None
        self.form = IncidentForm()

    @property
    def creating(self) -> bool:
        return self.creator is not None and self.creator.mutating

    @property
    def can_submit(self) -> bool:
        """Whether the dialog's submit control is enabled.

        Disabled while a submission is in flight — this is what keeps two
        submissions from overlapping on one MutationSession.
        """
        return (
            self.dialog_open
            and not self.creating
            and bool(self.form.title.strip())
            and bool(self.form.owner.strip())
        )

    @property
    def create_error(self) -> str | None:
        if self.creator is None or self.creator.error is None:
            return None
        return self.creator.error.message

    async def submit_incident(self) -> MutationOutcome:
        """Submit the dialog form once and refresh the list on success.

        Returns:
            The mutation outcome. On failure the dialog stays open.

        Raises:
            RuntimeError: If the dialog is not open.
        """
        if not self.dialog_open or self.creator is None:
            raise RuntimeError("The create incident dialog is not open.")

        creator = self.creator
        outcome = await creator.submit(asdict(self.form))
        if not outcome.ok:
            return outcome

        tasks = self._refresher.after_success(creator, [self.incidents] if self.is_open else [])
        await asyncio.gather(*tasks)
        logger.info("Incident created with %s; list refreshed.", outcome.token)
        self.close_dialog()
        return outcome
