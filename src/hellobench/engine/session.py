"""Load run lifecycle: virtual users, scaling, metrics and signal handling."""

from __future__ import annotations

import asyncio
import contextlib
import random
import time
from enum import Enum, auto
from typing import TYPE_CHECKING

from hellobench._internal.errors import EngineError
from hellobench._internal.logging import get_logger
from hellobench._internal.signals import install_stop_handlers, remove_stop_handlers
from hellobench.dsl.http_client import HttpClient
from hellobench.engine._user_utils import run_iteration, shutdown_all_users
from hellobench.engine.scheduler import ScaleCommand, Scheduler
from hellobench.metrics.collector import MetricCollector
from hellobench.metrics.models import MetricSnapshot, TestResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from hellobench.dsl.scenario import ScenarioDefinition
    from hellobench.patterns.base import LoadPattern

logger = get_logger("engine.session")


class SessionState(Enum):
    """State machine for a load run."""

    CREATED = auto()
    STARTING = auto()
    RUNNING = auto()
    STOPPING = auto()
    COMPLETED = auto()
    FAILED = auto()


class TestSession:
    """Runs one scenario under one schedule inside a single event loop.

    Every tick the session grows or shrinks the pool of virtual-user tasks
    to the schedule's target and flushes a metric snapshot.  Each virtual
    user repeats the scenario iteration (all tasks in order, then a pause
    drawn from ``think_time``) until it is cancelled or the run ends.

    State machine: CREATED -> STARTING -> RUNNING -> STOPPING -> COMPLETED
                                                  -> FAILED (on error)

    Attributes:
        scenario: The scenario being executed.
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        scenario: ScenarioDefinition,
        pattern: LoadPattern,
        duration_seconds: float,
        *,
        tick_interval: float = 1.0,
        worker_id: int = 0,
        on_snapshot: Callable[[MetricSnapshot], None] | None = None,
        request_timeout: float = 30.0,
        pool_size: int = 100,
    ) -> None:
        """Prepare a load run; nothing starts until :meth:`run` is awaited.

        Args:
            scenario: The scenario definition to execute.
            pattern: Schedule controlling the virtual-user count.
            duration_seconds: Total run duration in seconds.
            tick_interval: Seconds between concurrency adjustments.
            worker_id: Identifier stamped on every metric.
            on_snapshot: Optional callback invoked with every tick's snapshot.
            request_timeout: Per-request timeout in seconds.
            pool_size: Connection limit of each virtual user's client.
        """
        self.scenario = scenario
        self._pattern = pattern
        self._duration_seconds = duration_seconds
        self._tick_interval = tick_interval
        self._worker_id = worker_id
        self._on_snapshot = on_snapshot
        self._request_timeout = request_timeout
        self._pool_size = pool_size

        self._state = SessionState.CREATED
        self._collector = MetricCollector(worker_id=worker_id)
        self._user_tasks: list[tuple[int, asyncio.Task[None]]] = []
        self._next_user_id = 0
        self._stop_event = asyncio.Event()
        self._started_at = 0.0

    @property
    def state(self) -> SessionState:
        """Return the current session state."""
        return self._state

    @property
    def active_user_count(self) -> int:
        """Return the number of live virtual users."""
        return len(self._user_tasks)

    async def run(self) -> TestResult:
        """Drive the schedule to its end (or a stop request) and summarise.

        Returns:
            TestResult containing all snapshots and the final summary.

        Raises:
            EngineError: If the run fails with an unexpected error.
        """
        self._state = SessionState.STARTING
        logger.info(
            "Starting load run: scenario=%s, duration=%.1fs, pattern=%s",
            self.scenario.name,
            self._duration_seconds,
            self._pattern.describe(),
            extra={"scenario": self.scenario.name},
        )
        install_stop_handlers(self._on_stop_signal)

        scheduler = Scheduler(self._pattern, self._duration_seconds, self._tick_interval)
        snapshots: list[MetricSnapshot] = []
        self._started_at = time.monotonic()
        self._state = SessionState.RUNNING

        try:
            for command in scheduler.iter_commands():
                if not await self._wait_for_tick(command):
                    break
                snapshots.append(await self._tick(command))
        except Exception as exc:
            self._state = SessionState.FAILED
            logger.exception("Load run failed")
            msg = f"Load run of {self.scenario.name!r} failed: {exc}"
            raise EngineError(msg) from exc
        finally:
            if self._state is not SessionState.FAILED:
                self._state = SessionState.STOPPING
            await shutdown_all_users(self._user_tasks, self._stop_event)
            remove_stop_handlers()

        return self._summarise(snapshots)

    async def stop(self) -> None:
        """Ask the run to wind down; the tick loop exits without waiting out the tick."""
        if self._state is SessionState.RUNNING:
            logger.info("Graceful shutdown requested")
            self._state = SessionState.STOPPING
            self._stop_event.set()

    def _on_stop_signal(self) -> None:
        logger.info("Signal received, initiating graceful shutdown")
        self._state = SessionState.STOPPING
        self._stop_event.set()

    async def _wait_for_tick(self, command: ScaleCommand) -> bool:
        """Sleep until *command* is due. Returns False if the run was stopped."""
        delay = self._started_at + command.elapsed_seconds - time.monotonic()
        if delay > 0:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), delay)
        return not self._stop_event.is_set()

    async def _tick(self, command: ScaleCommand) -> MetricSnapshot:
        """Apply one scale command and flush the interval's metrics."""
        await self._scale_users(command.target_concurrency)

        elapsed = time.monotonic() - self._started_at
        snapshot = self._collector.flush(
            elapsed_seconds=elapsed,
            active_users=self.active_user_count,
        )
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

        logger.debug(
            "Tick %.1fs (%s %d): users=%d, rps=%.1f, p95=%.1fms, errors=%d, checks failed=%d",
            elapsed,
            command.direction.value,
            command.delta,
            self.active_user_count,
            snapshot.requests_per_second,
            snapshot.latency_p95,
            snapshot.total_errors,
            snapshot.checks_failed,
        )
        return snapshot

    def _summarise(self, snapshots: list[MetricSnapshot]) -> TestResult:
        end_time = time.monotonic()
        total_duration = end_time - self._started_at

        # Requests that finished while users were shutting down
        self._collector.flush(elapsed_seconds=total_duration, active_users=0)
        final_summary = self._collector.get_cumulative_snapshot(
            elapsed_seconds=total_duration,
            active_users=0,
        )

        self._state = SessionState.COMPLETED
        logger.info(
            "Load run completed: duration=%.1fs, iterations=%d, requests=%d, avg_rps=%.1f, "
            "p95=%.1fms, error_rate=%.2f%%, checks=%d passed / %d failed",
            total_duration,
            final_summary.iterations,
            final_summary.total_requests,
            final_summary.requests_per_second,
            final_summary.latency_p95,
            final_summary.error_rate * 100,
            final_summary.checks_passed,
            final_summary.checks_failed,
            extra={"scenario": self.scenario.name},
        )

        return TestResult(
            scenario_name=self.scenario.name,
            start_time=self._started_at,
            end_time=end_time,
            duration_seconds=total_duration,
            pattern_description=self._pattern.describe(),
            snapshots=snapshots,
            final_summary=final_summary,
        )

    async def _pause(self) -> None:
        """Sleep for a think-time draw, waking early if the run is stopping."""
        low, high = self.scenario.think_time
        delay = random.uniform(low, high)  # noqa: S311
        if delay <= 0:
            await asyncio.sleep(0)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), delay)

    async def _run_virtual_user(self, user_id: int) -> None:
        """One virtual user: setup, iterate until stopped or cancelled, teardown."""
        instance = self.scenario.cls()
        async with HttpClient(
            base_url=self.scenario.base_url,
            headers=dict(self.scenario.default_headers),
            metric_callback=self._collector.record,
            check_callback=self._collector.record_check,
            worker_id=self._worker_id,
            timeout=self._request_timeout,
            pool_size=self._pool_size,
        ) as client:
            try:
                if await self._setup(instance, client, user_id):
                    while not self._stop_event.is_set():
                        await run_iteration(instance, client, self.scenario.tasks, user_id)
                        self._collector.record_iteration()
                        await self._pause()
            except asyncio.CancelledError:
                logger.debug("Virtual user %d cancelled", user_id)
            except Exception:
                logger.exception("Virtual user %d stopped on an unexpected error", user_id)
            finally:
                await self._teardown(instance, client, user_id)

    async def _setup(self, instance: object, client: HttpClient, user_id: int) -> bool:
        """Run the setup hook. Returns False if it raised, so the user never iterates."""
        if self.scenario.setup_func is None:
            return True
        try:
            await self.scenario.setup_func(instance, client)
        except Exception:
            logger.warning("Setup failed for user %d", user_id, exc_info=True)
            return False
        return True

    async def _teardown(self, instance: object, client: HttpClient, user_id: int) -> None:
        if self.scenario.teardown_func is None:
            return
        try:
            await self.scenario.teardown_func(instance, client)
        except Exception:
            logger.warning("Teardown failed for user %d", user_id, exc_info=True)

    async def _scale_users(self, target: int) -> None:
        """Grow or shrink the virtual-user pool to *target*.

        Scale-down cancels the newest users first; their in-flight requests
        are abandoned.
        """
        self._user_tasks = [(uid, t) for uid, t in self._user_tasks if not t.done()]
        missing = target - self.active_user_count

        for _ in range(missing):
            user_id = self._next_user_id
            self._next_user_id += 1
            task = asyncio.create_task(
                self._run_virtual_user(user_id),
                name=f"virtual-user-{user_id}",
            )
            self._user_tasks.append((user_id, task))

        if missing < 0:
            removed = [self._user_tasks.pop()[1] for _ in range(-missing)]
            for task in removed:
                task.cancel()
            await asyncio.wait(removed, timeout=2.0)
