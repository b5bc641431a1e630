"""Decorators for defining load profiles."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

from hellobench._internal.errors import ScenarioError
from hellobench.dsl.scenario import (
    AsyncScenarioMethod,
    ScenarioDefinition,
    TaskDefinition,
    registry,
)
from hellobench.patterns.stages import to_stage

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from hellobench._internal.types import Headers, ThinkTime
    from hellobench.patterns.stages import Stage

# Marker attribute names set on decorated methods.
_TASK_MARKER = "_hellobench_task"
_TASK_NAME = "_hellobench_task_name"
_SETUP_MARKER = "_hellobench_setup"
_TEARDOWN_MARKER = "_hellobench_teardown"


def _source_line(func: AsyncScenarioMethod) -> int:
    code = getattr(inspect.unwrap(func), "__code__", None)  # type: ignore[arg-type]
    return code.co_firstlineno if code is not None else 0


def scenario(
    *,
    name: str,
    base_url: str,
    default_headers: Headers | None = None,
    think_time: ThinkTime = (1.0, 1.0),
    stages: Sequence[Stage | tuple[str | float, int]] | None = None,
) -> Callable[[type], ScenarioDefinition]:
    """Decorate a class as a load profile.

    The decorator collects the class's ``@task``, ``@setup`` and
    ``@teardown`` methods, builds a ``ScenarioDefinition`` and registers it
    in the global scenario registry.  Every task runs once per iteration, in
    the order the methods appear in the source.

    Args:
        name: Human-readable name for this scenario.
        base_url: Base URL for all HTTP requests.
        default_headers: Default headers applied to every request.
        think_time: Pause range (min, max) in seconds after each iteration.
        stages: Optional default ramp stages, e.g. ``[("5m", 200), ("5m", 0)]``.

    Returns:
        A class decorator that transforms the class into a
        ScenarioDefinition.

    Raises:
        ScenarioError: If the class has no ``@task`` methods, a decorated
            method is not a coroutine function, or the think time is invalid.
    """
    min_think, max_think = think_time
    if min_think < 0 or max_think < min_think:
        msg = f"think_time must be a (min, max) pair with 0 <= min <= max, got {think_time}"
        raise ScenarioError(msg)

    def decorator(cls: type) -> ScenarioDefinition:
        tasks: list[TaskDefinition] = []
        setup_func: AsyncScenarioMethod | None = None
        teardown_func: AsyncScenarioMethod | None = None

        for attr_name in dir(cls):
            if attr_name.startswith("__"):
                continue

            attr = getattr(cls, attr_name, None)
            if attr is None or not callable(attr):
                continue

            if getattr(attr, _TASK_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Task method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                tasks.append(
                    TaskDefinition(
                        name=getattr(attr, _TASK_NAME, attr_name),
                        func=attr,
                        order=_source_line(attr),
                    )
                )

            if getattr(attr, _SETUP_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Setup method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                if setup_func is not None:
                    msg = f"Scenario {cls.__name__} has multiple @setup methods"
                    raise ScenarioError(msg)
                setup_func = attr

            if getattr(attr, _TEARDOWN_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Teardown method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                if teardown_func is not None:
                    msg = f"Scenario {cls.__name__} has multiple @teardown methods"
                    raise ScenarioError(msg)
                teardown_func = attr

        if not tasks:
            msg = f"Scenario {cls.__name__} has no @task methods. At least one @task is required."
            raise ScenarioError(msg)

        tasks.sort(key=lambda t: t.order)

        definition = ScenarioDefinition(
            name=name,
            cls=cls,
            base_url=base_url,
            default_headers=default_headers or {},
            tasks=tasks,
            setup_func=setup_func,
            teardown_func=teardown_func,
            think_time=think_time,
            stages=[to_stage(s) for s in stages] if stages else None,
        )

        registry.register(definition)
        return definition

    return decorator


def task(
    func: AsyncScenarioMethod | None = None,
    *,
    name: str | None = None,
) -> AsyncScenarioMethod | Callable[[AsyncScenarioMethod], AsyncScenarioMethod]:
    """Mark a method as one step of the scenario iteration.

    Usable bare (``@task``) or with arguments (``@task(name="Create")``).

    Args:
        func: The method, when used without parentheses.
        name: Optional logical name for logs. Defaults to the method name.

    Returns:
        The tagged method, or a decorator producing it.
    """

    def decorator(method: AsyncScenarioMethod) -> AsyncScenarioMethod:
        setattr(method, _TASK_MARKER, True)
        setattr(method, _TASK_NAME, name or method.__name__)
        return method

    if func is not None:
        return decorator(func)
    return decorator


def setup(func: AsyncScenarioMethod) -> AsyncScenarioMethod:
    """Mark a method as the per-VU setup hook, run before the first iteration."""
    setattr(func, _SETUP_MARKER, True)
    return func


def teardown(func: AsyncScenarioMethod) -> AsyncScenarioMethod:
    """Mark a method as the per-VU teardown hook, run on shutdown."""
    setattr(func, _TEARDOWN_MARKER, True)
    return func
