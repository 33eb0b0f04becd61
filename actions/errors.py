"""Action error taxonomy.

Every failure a remote operation can report is an ActionError. The core
sessions only ever read `.message` — the subclasses exist so collaborators
and views can classify a failure if they care to. The core itself never
branches on the subclass.
"""


class ActionError(Exception):
    """A remote operation failed.

    Attributes:
        message: Human-readable description, safe to render in a view.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ActionError":
        """Wrap an arbitrary exception, keeping its text as the message."""
        if isinstance(exc, ActionError):
            return exc
        return cls(str(exc) or type(exc).__name__)


class NetworkError(ActionError):
    """The transport failed before the operation could report a result."""


class RemoteError(ActionError):
    """The operation ran and reported failure (e.g. a rejected payload).

    Attributes:
        status_code: HTTP status returned by the server, when there is one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
