"""Dynamic scenario file loading via importlib."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

from hellobench._internal.errors import ScenarioError
from hellobench._internal.logging import get_logger
from hellobench.dsl.scenario import ScenarioDefinition, registry

logger = get_logger("dsl.loader")


def load_scenario(file_path: str | Path, name: str | None = None) -> ScenarioDefinition:
    """Load a load profile from a Python file.

    Imports the file with ``importlib`` and scans the module globals for
    ``ScenarioDefinition`` instances (created by the ``@scenario``
    decorator).  Definitions registered by a failed import are removed from
    the global registry again.

    Args:
        file_path: Path to the Python scenario file.
        name: Scenario name to pick when the file defines several.  Defaults
            to the first definition found.

    Returns:
        The selected ``ScenarioDefinition``.

    Raises:
        ScenarioError: If the file does not exist, cannot be imported,
            contains no ``@scenario``-decorated class, or has no scenario
            called *name*.
    """
    path = Path(file_path)

    if not path.exists():
        msg = f"Scenario file not found: {path}"
        raise ScenarioError(msg)

    if path.suffix != ".py":
        msg = f"Scenario file must be a .py file, got: {path}"
        raise ScenarioError(msg)

    module_name = f"hellobench_scenario_{path.stem}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Could not create module spec for: {path}"
        raise ScenarioError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    known = {d.name for d in registry.get_all()}

    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        for definition in registry.get_all():
            if definition.name not in known:
                registry.unregister(definition.name)
        msg = f"Failed to import scenario file {path}: {exc}"
        raise ScenarioError(msg) from exc

    definitions = [obj for obj in vars(module).values() if isinstance(obj, ScenarioDefinition)]

    if not definitions:
        sys.modules.pop(module_name, None)
        msg = (
            f"No @scenario-decorated class found in {path}. "
            f"Ensure at least one class is decorated with @scenario."
        )
        raise ScenarioError(msg)

    if name is None:
        selected = definitions[0]
    else:
        matches = [d for d in definitions if d.name == name]
        if not matches:
            available = ", ".join(repr(d.name) for d in definitions)
            msg = f"No scenario named {name!r} in {path}; available: {available}"
            raise ScenarioError(msg)
        selected = matches[0]

    logger.debug("Loaded scenario %r from %s (%d tasks)", selected.name, path, len(selected.tasks))
    return selected
