"""Refresh coordinator.

Glue between a successful mutation and the loads that should show its
effect. The coordinator tracks no dependency graph: the caller names the
sessions to refresh at the call site, right after it has checked that the
submission succeeded.
"""

import asyncio
import logging
from collections.abc import Iterable

from core.load_session import LoadSession
from core.mutation import MutationSession
from schemas.session import MutationStatus

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """Re-runs load sessions after a successful mutation.

    Stateless; one instance can serve every view.
    """

    def after_success(
        self,
        mutation: MutationSession,
        sessions: Iterable[LoadSession],
    ) -> list[asyncio.Task]:
        """Re-invoke each open session with its current params (new epoch).

        Closed sessions are skipped — their views are gone.

        Args:
            mutation: The session whose submission just succeeded.
            sessions: Load sessions whose data the mutation may have changed.

        Returns:
            The refresh tasks, in the order the sessions were given. The
            caller may gather them to wait for the reload.

        Raises:
            ValueError: If the mutation is not in the success state. Calling
                this after a failed or in-flight submission is always a
                programming error in the view.
        """
        if mutation.status != MutationStatus.SUCCESS:
            raise ValueError(
                f"Mutation '{mutation.name}' is '{mutation.status.value}', not 'success'. "
                "Refresh only after a successful submission."
            )

        tasks = []
        for session in sessions:
            if session.closed:
                logger.debug("Skipping refresh of closed session '%s'.", session.name)
                continue
            tasks.append(session.refresh())

        logger.info(
            "Mutation '%s' (token %s) refreshed %d session(s).",
            mutation.name,
            mutation.token,
            len(tasks),
        )
        return tasks
