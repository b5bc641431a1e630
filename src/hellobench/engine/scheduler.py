"""Turns a virtual-user schedule into per-tick scale commands."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from hellobench.patterns.base import LoadPattern


class ScaleDirection(Enum):
    """Which way the live VU count moves on a tick."""

    UP = "up"
    DOWN = "down"
    HOLD = "hold"

    @classmethod
    def of(cls, change: int) -> ScaleDirection:
        """Classify a signed change in VU count."""
        if change > 0:
            return cls.UP
        if change < 0:
            return cls.DOWN
        return cls.HOLD


@dataclass(frozen=True)
class ScaleCommand:
    """Bring the live VU pool to ``target_concurrency`` at ``elapsed_seconds``.

    Attributes:
        elapsed_seconds: Offset from the start of the run.
        target_concurrency: VU count the pool should have after this tick.
        direction: UP, DOWN or HOLD relative to the previous tick.
        delta: Size of the change, never negative.
    """

    elapsed_seconds: float
    target_concurrency: int
    direction: ScaleDirection
    delta: int

    @property
    def signed_delta(self) -> int:
        """Return the change with its sign (negative when scaling down)."""
        return -self.delta if self.direction is ScaleDirection.DOWN else self.delta


class Scheduler:
    """Walks a :class:`LoadPattern` and emits one :class:`ScaleCommand` per tick.

    The VU pool is assumed empty before the first tick, so a schedule that
    opens at N users starts with ``UP`` by N.

    Each command targets the lowest value the pattern reaches before the
    next tick, so the live pool never runs above the schedule in between.
    A ramp down therefore lands one tick early.

    Args:
        pattern: The schedule to follow.
        duration_seconds: Length of the run in seconds.
        tick_interval: Seconds between adjustments.
    """

    def __init__(
        self,
        pattern: LoadPattern,
        duration_seconds: float,
        tick_interval: float = 1.0,
    ) -> None:
        self._pattern = pattern
        self._duration_seconds = duration_seconds
        self._tick_interval = tick_interval

    def iter_commands(self) -> Iterator[ScaleCommand]:
        """Yield the command for every tick, in time order."""
        live = 0
        ticks = self._pattern.iter_concurrency(self._duration_seconds, self._tick_interval)
        for elapsed, _ in ticks:
            target = self._pattern.lowest_target(elapsed, elapsed + self._tick_interval)
            change = target - live
            live = target
            yield ScaleCommand(elapsed, target, ScaleDirection.of(change), abs(change))

    @property
    def total_ticks(self) -> int:
        """Return how many commands :meth:`iter_commands` will produce."""
        return math.floor(self._duration_seconds / self._tick_interval) + 1
