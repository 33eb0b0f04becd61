"""Action descriptors and the error taxonomy they report."""

from actions.base import Action, ActionDescriptor
from actions.errors import ActionError, NetworkError, RemoteError

__all__ = ["Action", "ActionDescriptor", "ActionError", "NetworkError", "RemoteError"]
