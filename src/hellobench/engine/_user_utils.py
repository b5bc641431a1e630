"""Virtual-user helpers shared by the session engine and its tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from hellobench._internal.logging import get_logger

if TYPE_CHECKING:
    from hellobench.dsl.http_client import HttpClient
    from hellobench.dsl.scenario import TaskDefinition

logger = get_logger("engine.user_utils")


async def run_iteration(
    instance: object,
    client: HttpClient,
    tasks: list[TaskDefinition],
    user_id: int = 0,
) -> int:
    """Run every task once, in order.

    A task that raises (a bug in the task, a body that is not JSON) is
    logged and skipped; the remaining tasks still run.  Transport errors do
    not raise: requests return a status-0 ``FailedResponse`` instead.
    Failed checks are not exceptions and never interrupt the iteration.

    Args:
        instance: The scenario class instance owned by the virtual user.
        client: The virtual user's HTTP client.
        tasks: Tasks in execution order.
        user_id: Virtual user id, for logs.

    Returns:
        The number of tasks that raised.
    """
    failures = 0
    for task_def in tasks:
        try:
            await task_def.func(instance, client)
        except asyncio.CancelledError:
            raise
        except Exception:
            failures += 1
            logger.debug(
                "Task %s failed for user %d",
                task_def.name,
                user_id,
                exc_info=True,
            )
    return failures


async def shutdown_all_users(
    user_tasks: list[tuple[int, asyncio.Task[None]]],
    stop_event: asyncio.Event,
    grace_period: float = 5.0,
) -> None:
    """Stop every virtual user.

    Sets the stop event so users finish their current iteration, waits up
    to *grace_period* seconds, then cancels whatever is still running.

    Args:
        user_tasks: List of (user_id, task) tuples to shut down.
        stop_event: Event that tells running users to stop.
        grace_period: Seconds to wait before cancelling.
    """
    stop_event.set()

    if user_tasks:
        tasks = [t for _, t in user_tasks]
        _done, pending = await asyncio.wait(tasks, timeout=grace_period)

        for task in pending:
            task.cancel()

        if pending:
            await asyncio.wait(pending, timeout=2.0)

    user_tasks.clear()
    logger.debug("All virtual users shut down")
