"""Top-level load run orchestrator."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from hellobench._internal.config import load_config
from hellobench._internal.errors import ConfigError, EngineError
from hellobench._internal.logging import get_logger, setup_logging
from hellobench.dsl.loader import load_scenario
from hellobench.dsl.scenario import registry
from hellobench.engine.session import TestSession
from hellobench.patterns.stages import StagedPattern

if TYPE_CHECKING:
    from collections.abc import Callable

    from hellobench.dsl.scenario import ScenarioDefinition
    from hellobench.metrics.models import MetricSnapshot, TestResult
    from hellobench.patterns.base import LoadPattern

logger = get_logger("engine.runner")


class LoadTestRunner:
    """Loads a scenario file and runs it to completion.

    Resolution rules, applied when :meth:`run` is called:

    * base URL: the *base_url* argument, else ``HELLOBENCH_BASE_URL``, else
      the URL declared by the scenario;
    * schedule: the *pattern* argument, else the scenario's ``stages``;
    * duration: the *duration_seconds* argument, else the schedule's own
      length (staged schedules only).

    Attributes:
        scenario_path: Absolute path to the scenario file.
    """

    def __init__(
        self,
        scenario_path: str | Path,
        pattern: LoadPattern | None = None,
        duration_seconds: float | None = None,
        *,
        base_url: str | None = None,
        tick_interval: float = 1.0,
        on_snapshot: Callable[[MetricSnapshot], None] | None = None,
        log_level: int = logging.INFO,
        json_logs: bool = False,
    ) -> None:
        """Initialize the runner.

        Args:
            scenario_path: Path to the scenario .py file.
            pattern: Schedule controlling the virtual-user count.
            duration_seconds: Total run duration in seconds.
            base_url: Override for the scenario's base URL.
            tick_interval: Seconds between concurrency adjustments.
            on_snapshot: Optional callback invoked with each MetricSnapshot.
            log_level: Logging level.
            json_logs: Emit logs as JSON lines.

        Raises:
            EngineError: If the scenario file does not exist.
        """
        self.scenario_path = str(Path(scenario_path).resolve())
        self._pattern = pattern
        self._duration_seconds = duration_seconds
        self._base_url = base_url
        self._tick_interval = tick_interval
        self.on_snapshot = on_snapshot
        self._log_level = log_level
        self._json_logs = json_logs

        if not Path(self.scenario_path).exists():
            msg = f"Scenario file not found: {self.scenario_path}"
            raise EngineError(msg)

    def resolve(self) -> tuple[ScenarioDefinition, LoadPattern, float]:
        """Load the scenario and settle base URL, schedule and duration.

        Returns:
            ``(scenario, pattern, duration_seconds)`` ready for a session.

        Raises:
            ScenarioError: If the scenario file is invalid.
            ConfigError: If no schedule or duration can be determined.
        """
        config = load_config()

        # The same file may be loaded more than once per process
        registry.clear()
        scenario = load_scenario(self.scenario_path)

        base_url = self._base_url or config.default_base_url
        if base_url:
            scenario = dataclasses.replace(scenario, base_url=base_url)
        if config.default_headers:
            scenario = dataclasses.replace(
                scenario,
                default_headers={**config.default_headers, **scenario.default_headers},
            )

        pattern = self._pattern
        if pattern is None:
            if not scenario.stages:
                msg = (
                    f"Scenario {scenario.name!r} declares no stages; "
                    "pass a schedule (e.g. --stage 30s:10 or --users/--duration)"
                )
                raise ConfigError(msg)
            pattern = StagedPattern(scenario.stages)

        duration = self._duration_seconds or pattern.total_duration
        if duration is None:
            msg = f"A duration is required for {pattern.describe()}"
            raise ConfigError(msg)

        return scenario, pattern, duration

    def run(self) -> TestResult:
        """Execute the load run and return results.

        Blocks until the schedule ends or SIGINT/SIGTERM is received.

        Returns:
            TestResult containing all snapshots and the final summary.

        Raises:
            ScenarioError: If the scenario file is invalid.
            ConfigError: If configuration is invalid.
            EngineError: If the run fails.
        """
        setup_logging(level=self._log_level, json_format=self._json_logs)

        scenario, pattern, duration = self.resolve()
        config = load_config()

        logger.info(
            "Running %s against %s for %.1fs",
            scenario.name,
            scenario.base_url,
            duration,
            extra={"scenario": scenario.name},
        )

        session = TestSession(
            scenario=scenario,
            pattern=pattern,
            duration_seconds=duration,
            tick_interval=self._tick_interval,
            on_snapshot=self.on_snapshot,
            request_timeout=config.request_timeout,
            pool_size=config.connection_pool_size,
        )
        return asyncio.run(session.run())
