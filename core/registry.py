"""Action registry.

ActionRegistry is the dashboard's roster of action descriptors. The
collaborator layer builds one (in-process or HTTP-backed) and views look
descriptors up by name, so a view never imports a concrete backend.

The registry enforces one invariant: action names must be unique. Two
descriptors with the same name would make lookups ambiguous, so duplicate
registration is rejected immediately.
"""

from actions.base import ActionDescriptor


class ActionRegistry:
    """Tracks registered action descriptors and provides lookup by name.

    Internally backed by a dict keyed on action name.

    Attributes:
        _actions: Internal dict mapping action name to descriptor.
    """

    def __init__(self) -> None:
        """Initialise an empty registry."""
        self._actions: dict[str, ActionDescriptor] = {}

    def register(self, action: ActionDescriptor) -> None:
        """Register a descriptor.

        Args:
            action: The descriptor to register. Its name is the unique key.

        Raises:
            ValueError: If an action with the same name is already
                registered. This is always a programming error, not a
                recoverable condition.
        """
        if action.name in self._actions:
            raise ValueError(
                f"Action '{action.name}' is already registered. "
                "Each action must have a unique name."
            )
        self._actions[action.name] = action

    def get(self, name: str) -> ActionDescriptor:
        """Return the descriptor registered under name.

        A missing action is a wiring mistake, so it raises.

        Raises:
            KeyError: If no action with that name is registered.
        """
        try:
            return self._actions[name]
        except KeyError:
            raise KeyError(f"No action named '{name}' is registered.") from None

    def get_all(self) -> list[ActionDescriptor]:
        """Return all registered descriptors as a copy, in registration order."""
        return list(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)
