"""Tests for the scenario registry, dataclasses, and scenario loader."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from hellobench._internal.errors import ScenarioError
from hellobench.dsl.decorators import scenario, task
from hellobench.dsl.loader import load_scenario
from hellobench.dsl.scenario import (
    ScenarioDefinition,
    ScenarioRegistry,
    TaskDefinition,
    registry,
)


@pytest.fixture(autouse=True)
def _clear_registry():
    """Clear the global scenario registry before each test."""
    registry.clear()
    yield
    registry.clear()


def _definition(name: str) -> ScenarioDefinition:
    async def read(self, client: object) -> None:
        pass

    return ScenarioDefinition(
        name=name,
        cls=object,
        base_url="http://localhost",
        tasks=[TaskDefinition(name="read", func=read)],
    )


# =========================================================================
# ScenarioRegistry
# =========================================================================


class TestScenarioRegistry:
    """Tests for the ScenarioRegistry class."""

    def test_register_and_get(self):
        reg = ScenarioRegistry()
        definition = _definition("Lookup")
        reg.register(definition)
        assert reg.get("Lookup") is definition

    def test_get_nonexistent_returns_none(self):
        assert ScenarioRegistry().get("nonexistent") is None

    def test_get_all_keeps_registration_order(self):
        reg = ScenarioRegistry()
        reg.register(_definition("First"))
        reg.register(_definition("Second"))
        assert [d.name for d in reg.get_all()] == ["First", "Second"]

    def test_duplicate_name_raises_error(self):
        reg = ScenarioRegistry()
        reg.register(_definition("Dup"))
        with pytest.raises(ScenarioError, match="already registered"):
            reg.register(_definition("Dup"))

    def test_unregister(self):
        reg = ScenarioRegistry()
        reg.register(_definition("Gone"))
        reg.unregister("Gone")
        assert reg.get("Gone") is None
        assert len(reg) == 0

    def test_unregister_unknown_is_noop(self):
        reg = ScenarioRegistry()
        reg.unregister("never-registered")
        assert len(reg) == 0

    def test_clear_and_len(self):
        reg = ScenarioRegistry()
        reg.register(_definition("A"))
        reg.register(_definition("B"))
        assert len(reg) == 2
        reg.clear()
        assert len(reg) == 0


# =========================================================================
# Dataclass integrity
# =========================================================================


class TestDataclasses:
    """Tests for TaskDefinition and ScenarioDefinition."""

    def test_task_definition_default_order(self):
        async def noop(self, client: object) -> None:
            pass

        assert TaskDefinition(name="noop", func=noop).order == 0

    def test_scenario_definition_defaults(self):
        definition = ScenarioDefinition(name="Bare", cls=object, base_url="http://x")
        assert definition.default_headers == {}
        assert definition.tasks == []
        assert definition.setup_func is None
        assert definition.teardown_func is None
        assert definition.think_time == (1.0, 1.0)
        assert definition.stages is None


# =========================================================================
# Loader
# =========================================================================

TWO_SCENARIOS = """\
from hellobench import scenario, task


@scenario(name="Smoke", base_url="http://localhost:8080", stages=[("10s", 1)])
class Smoke:
    @task
    async def read(self, client):
        pass


@scenario(name="CRUD", base_url="http://localhost:8080", stages=[("5m", 200), ("5m", 0)])
class Crud:
    @task
    async def read(self, client):
        pass

    @task
    async def create(self, client):
        pass
"""


class TestLoader:
    """Tests for load_scenario."""

    def test_load_scenario_from_file(self, tmp_path: Path):
        path = tmp_path / "profile.py"
        path.write_text(TWO_SCENARIOS)
        definition = load_scenario(path)
        assert definition.name == "Smoke"
        assert len(registry) == 2

    def test_load_scenario_by_name(self, tmp_path: Path):
        path = tmp_path / "profile.py"
        path.write_text(TWO_SCENARIOS)
        definition = load_scenario(str(path), name="CRUD")
        assert definition.name == "CRUD"
        assert [t.name for t in definition.tasks] == ["read", "create"]

    def test_load_scenario_unknown_name(self, tmp_path: Path):
        path = tmp_path / "profile.py"
        path.write_text(TWO_SCENARIOS)
        with pytest.raises(ScenarioError, match="No scenario named 'Soak'.*'Smoke', 'CRUD'"):
            load_scenario(path, name="Soak")

    def test_load_scenario_nonexistent_file(self, tmp_path: Path):
        with pytest.raises(ScenarioError, match="not found"):
            load_scenario(tmp_path / "missing.py")

    def test_load_scenario_not_python_file(self, tmp_path: Path):
        path = tmp_path / "profile.js"
        path.write_text("export default function () {}")
        with pytest.raises(ScenarioError, match=r"must be a \.py file"):
            load_scenario(path)

    def test_load_scenario_no_scenario_in_file(self, tmp_path: Path):
        path = tmp_path / "plain.py"
        path.write_text("VALUE = 1\n")
        with pytest.raises(ScenarioError, match="No @scenario-decorated class"):
            load_scenario(path)

    def test_load_scenario_import_error(self, tmp_path: Path):
        path = tmp_path / "broken.py"
        path.write_text("import definitely_not_a_module_xyz\n")
        with pytest.raises(ScenarioError, match="Failed to import"):
            load_scenario(path)

    def test_failed_import_rolls_back_registrations(self, tmp_path: Path):
        path = tmp_path / "partial.py"
        path.write_text(
            "from hellobench import scenario, task\n"
            "\n"
            "@scenario(name='Partial', base_url='http://localhost')\n"
            "class Partial:\n"
            "    @task\n"
            "    async def read(self, client):\n"
            "        pass\n"
            "\n"
            "raise RuntimeError('boom')\n"
        )
        with pytest.raises(ScenarioError, match="boom"):
            load_scenario(path)
        assert registry.get("Partial") is None

    def test_failed_import_keeps_earlier_registrations(self, tmp_path: Path):
        @scenario(name="Existing", base_url="http://localhost")
        class Existing:
            @task
            async def read(self, client: object) -> None:
                pass

        path = tmp_path / "broken.py"
        path.write_text("1 / 0\n")
        with pytest.raises(ScenarioError):
            load_scenario(path)
        assert registry.get("Existing") is Existing

    def test_load_example_profile(self, scenario_file: Path):
        definition = load_scenario(scenario_file)
        assert definition.name == "CRUD Test"
        assert [t.name for t in definition.tasks] == ["read", "create", "update", "delete"]
        assert definition.stages is not None
        assert len(definition.stages) == 3
