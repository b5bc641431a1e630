"""Scenario and task definition dataclasses and the global scenario registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from hellobench._internal.errors import ScenarioError

if TYPE_CHECKING:
    from hellobench._internal.types import Headers, ThinkTime
    from hellobench.patterns.stages import Stage


class AsyncScenarioMethod(Protocol):
    """Protocol for async scenario methods (tasks, setup, teardown).

    Matches unbound async methods with signature ``(self, client) -> None``.
    """

    @property
    def __name__(self) -> str:
        """Function name."""
        ...

    async def __call__(self, instance: object, client: object) -> None:
        """Call the method."""
        ...


@dataclass
class TaskDefinition:
    """One step of a scenario iteration.

    Attributes:
        name: Human-readable name for this task.
        func: The unbound async method implementing this task.
        order: Sort key within the iteration; tasks run in ascending order.
            The decorator uses the method's source line.
    """

    name: str
    func: AsyncScenarioMethod
    order: int = 0


@dataclass
class ScenarioDefinition:
    """Complete definition of a load profile.

    Created by the ``@scenario`` class decorator. Contains all metadata
    needed to instantiate and execute a scenario.

    Attributes:
        name: Human-readable name for this scenario.
        cls: The original class that was decorated.
        base_url: Base URL for all HTTP requests in this scenario.
        default_headers: Default headers applied to every request.
        tasks: Task definitions, already sorted into execution order.
        setup_func: Optional coroutine called once per virtual user before
            its first iteration.
        teardown_func: Optional coroutine called once per virtual user on
            shutdown.
        think_time: Pause range (min, max) in seconds after each iteration.
        stages: Ramp stages to use when no schedule is given on the command
            line, or None.
    """

    name: str
    cls: type
    base_url: str
    default_headers: Headers = field(default_factory=dict)
    tasks: list[TaskDefinition] = field(default_factory=list)
    setup_func: AsyncScenarioMethod | None = None
    teardown_func: AsyncScenarioMethod | None = None
    think_time: ThinkTime = (1.0, 1.0)
    stages: list[Stage] | None = None


class ScenarioRegistry:
    """Registry of all discovered scenario definitions.

    Scenarios are registered automatically by the ``@scenario`` decorator.
    The registry is a module-level singleton.
    """

    def __init__(self) -> None:
        self._scenarios: dict[str, ScenarioDefinition] = {}

    def register(self, definition: ScenarioDefinition) -> None:
        """Register a scenario definition.

        Raises:
            ScenarioError: If a scenario with the same name is already
                registered.
        """
        if definition.name in self._scenarios:
            msg = f"Scenario {definition.name!r} is already registered"
            raise ScenarioError(msg)
        self._scenarios[definition.name] = definition

    def unregister(self, name: str) -> None:
        """Forget the scenario called *name*, if registered."""
        self._scenarios.pop(name, None)

    def get(self, name: str) -> ScenarioDefinition | None:
        """Look up a scenario by name, returning None if unknown."""
        return self._scenarios.get(name)

    def get_all(self) -> list[ScenarioDefinition]:
        """Return all registered scenarios."""
        return list(self._scenarios.values())

    def clear(self) -> None:
        """Remove all registered scenarios. Primarily for testing."""
        self._scenarios.clear()

    def __len__(self) -> int:
        return len(self._scenarios)


# Global singleton registry.
registry = ScenarioRegistry()
