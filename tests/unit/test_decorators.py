"""Tests for the @scenario, @task, @setup, and @teardown decorators."""

from __future__ import annotations

import pytest

from hellobench._internal.errors import ScenarioError
from hellobench.dsl.decorators import scenario, setup, task, teardown
from hellobench.dsl.scenario import ScenarioDefinition, registry
from hellobench.patterns.stages import Stage


@pytest.fixture(autouse=True)
def _clear_registry():
    """Clear the global scenario registry before each test."""
    registry.clear()
    yield
    registry.clear()


# =========================================================================
# @scenario decorator
# =========================================================================


class TestScenarioDecorator:
    """Tests for the @scenario class decorator."""

    def test_creates_scenario_definition(self):
        """@scenario transforms a class into a ScenarioDefinition."""

        @scenario(name="Test", base_url="http://localhost")
        class MyScenario:
            @task
            async def do_something(self, client: object) -> None:
                pass

        assert isinstance(MyScenario, ScenarioDefinition)
        assert MyScenario.name == "Test"
        assert MyScenario.base_url == "http://localhost"

    def test_preserves_original_class(self):
        class _Original:
            @task
            async def do_something(self, client: object) -> None:
                pass

        result = scenario(name="Test", base_url="http://localhost")(_Original)
        assert result.cls is _Original

    def test_default_headers(self):
        @scenario(
            name="Test",
            base_url="http://localhost",
            default_headers={"Content-Type": "application/json"},
        )
        class MyScenario:
            @task
            async def do_something(self, client: object) -> None:
                pass

        assert MyScenario.default_headers == {"Content-Type": "application/json"}

    def test_defaults(self):
        @scenario(name="Test", base_url="http://localhost")
        class MyScenario:
            @task
            async def do_something(self, client: object) -> None:
                pass

        assert MyScenario.default_headers == {}
        assert MyScenario.think_time == (1.0, 1.0)
        assert MyScenario.stages is None

    def test_registers_in_global_registry(self):
        @scenario(name="Registered", base_url="http://localhost")
        class MyScenario:
            @task
            async def do_something(self, client: object) -> None:
                pass

        assert registry.get("Registered") is MyScenario

    def test_duplicate_name_raises(self):
        @scenario(name="Dup", base_url="http://localhost")
        class First:
            @task
            async def a(self, client: object) -> None:
                pass

        with pytest.raises(ScenarioError, match="already registered"):

            @scenario(name="Dup", base_url="http://localhost")
            class Second:
                @task
                async def b(self, client: object) -> None:
                    pass

    def test_no_tasks_raises(self):
        with pytest.raises(ScenarioError, match="no @task methods"):

            @scenario(name="Empty", base_url="http://localhost")
            class Empty:
                async def not_a_task(self, client: object) -> None:
                    pass

    def test_sync_task_raises(self):
        with pytest.raises(ScenarioError, match="must be an async function"):

            @scenario(name="Sync", base_url="http://localhost")
            class Sync:
                @task
                def blocking(self, client: object) -> None:
                    pass

    def test_stages_are_normalised(self):
        @scenario(
            name="Staged",
            base_url="http://localhost",
            stages=[("5m", 200), ("10m", 1000), Stage(duration=60.0, target=0)],
        )
        class Staged:
            @task
            async def read(self, client: object) -> None:
                pass

        assert Staged.stages == [
            Stage(duration=300.0, target=200),
            Stage(duration=600.0, target=1000),
            Stage(duration=60.0, target=0),
        ]

    def test_invalid_stage_raises_config_error(self):
        from hellobench._internal.errors import ConfigError

        with pytest.raises(ConfigError, match="Invalid duration"):

            @scenario(name="Bad", base_url="http://localhost", stages=[("soon", 5)])
            class Bad:
                @task
                async def read(self, client: object) -> None:
                    pass

    @pytest.mark.parametrize("think_time", [(-1.0, 1.0), (2.0, 1.0)])
    def test_invalid_think_time_raises(self, think_time):
        with pytest.raises(ScenarioError, match="think_time"):
            scenario(name="Bad", base_url="http://localhost", think_time=think_time)

    def test_zero_think_time_allowed(self):
        @scenario(name="Fast", base_url="http://localhost", think_time=(0.0, 0.0))
        class Fast:
            @task
            async def read(self, client: object) -> None:
                pass

        assert Fast.think_time == (0.0, 0.0)


# =========================================================================
# @task decorator
# =========================================================================


class TestTaskDecorator:
    """Tests for the @task method decorator."""

    def test_tasks_run_in_source_order(self):
        """Tasks are sorted by definition order, not alphabetically."""

        @scenario(name="Ordered", base_url="http://localhost")
        class Ordered:
            @task
            async def read(self, client: object) -> None:
                pass

            @task
            async def create(self, client: object) -> None:
                pass

            @task
            async def update(self, client: object) -> None:
                pass

            @task
            async def delete(self, client: object) -> None:
                pass

        assert [t.name for t in Ordered.tasks] == ["read", "create", "update", "delete"]

    def test_custom_name(self):
        @scenario(name="Named", base_url="http://localhost")
        class Named:
            @task(name="Create")
            async def create_item(self, client: object) -> None:
                pass

        assert Named.tasks[0].name == "Create"

    def test_bare_and_called_forms_mix(self):
        @scenario(name="Mixed", base_url="http://localhost")
        class Mixed:
            @task()
            async def first(self, client: object) -> None:
                pass

            @task
            async def second(self, client: object) -> None:
                pass

        assert [t.name for t in Mixed.tasks] == ["first", "second"]

    def test_task_func_is_the_method(self):
        async def body(self, client: object) -> None:
            pass

        marked = task(body)
        assert marked is body

        @scenario(name="Func", base_url="http://localhost")
        class Func:
            read = marked

        assert Func.tasks[0].func is body


# =========================================================================
# @setup / @teardown decorators
# =========================================================================


class TestLifecycleDecorators:
    """Tests for @setup and @teardown."""

    def test_setup_and_teardown_are_collected(self):
        @scenario(name="Lifecycle", base_url="http://localhost")
        class Lifecycle:
            @setup
            async def on_start(self, client: object) -> None:
                pass

            @task
            async def read(self, client: object) -> None:
                pass

            @teardown
            async def on_stop(self, client: object) -> None:
                pass

        assert Lifecycle.setup_func is not None
        assert Lifecycle.setup_func.__name__ == "on_start"
        assert Lifecycle.teardown_func is not None
        assert Lifecycle.teardown_func.__name__ == "on_stop"
        assert [t.name for t in Lifecycle.tasks] == ["read"]

    def test_multiple_setup_raises(self):
        with pytest.raises(ScenarioError, match="multiple @setup"):

            @scenario(name="TwoSetups", base_url="http://localhost")
            class TwoSetups:
                @setup
                async def a(self, client: object) -> None:
                    pass

                @setup
                async def b(self, client: object) -> None:
                    pass

                @task
                async def read(self, client: object) -> None:
                    pass

    def test_sync_teardown_raises(self):
        with pytest.raises(ScenarioError, match="Teardown method"):

            @scenario(name="SyncTeardown", base_url="http://localhost")
            class SyncTeardown:
                @task
                async def read(self, client: object) -> None:
                    pass

                @teardown
                def on_stop(self, client: object) -> None:
                    pass
