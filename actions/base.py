"""Action descriptor base class.

An action descriptor is a stateless reference to one remote operation plus
the shape of the parameters it accepts. Load and mutation sessions hold a
reference to a descriptor and call invoke() — they never know whether the
operation runs in-process, over HTTP, or against a test double.

Swapping the backend means building a different set of descriptors with the
same names. Nothing in core/ changes.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable


class ActionDescriptor(ABC):
    """Abstract base class for every remote operation.

    Subclasses declare a unique name and implement invoke(). Failure is
    reported by raising ActionError (or a subclass); anything else that
    escapes is wrapped into an ActionError by the calling session.

    Attributes:
        params_type: Optional model class describing the accepted
            parameters. Purely declarative — sessions treat params as an
            opaque value and never validate it.
    """

    params_type: type | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this action (e.g. "load_incidents")."""
        ...

    @abstractmethod
    async def invoke(self, params: Any) -> Any:
        """Run the operation and return an entity or a sequence of entities.

        Args:
            params: Filter criteria for loads, or the payload (including
                the idempotency token) for mutations.

        Returns:
            A single entity, a sequence of entities, or None.

        Raises:
            ActionError: If the operation failed.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class Action(ActionDescriptor):
    """ActionDescriptor backed by a plain async callable.

    Example:
        load_incidents = Action("load_incidents", fetch_incidents,
                                params_type=IncidentFilter)
    """

    def __init__(
        self,
        name: str,
        handler: Callable[[Any], Awaitable[Any]],
        params_type: type | None = None,
    ) -> None:
        self._name = name
        self._handler = handler
        self.params_type = params_type

    @property
    def name(self) -> str:
        return self._name

    async def invoke(self, params: Any) -> Any:
        return await self._handler(params)
