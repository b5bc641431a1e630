"""Abstract base class for virtual-user schedules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from hellobench._internal.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterator


class LoadPattern(ABC):
    """Abstract base for all virtual-user schedules.

    A pattern defines how the target number of virtual users (VUs) changes
    over time.  Concrete subclasses implement :meth:`iter_concurrency` to
    yield ``(elapsed_seconds, target_concurrency)`` tuples at a configurable
    tick interval.

    Example::

        pattern = StagedPattern([("30s", 20), ("1m", 20), ("10s", 0)])
        for elapsed, users in pattern.iter_concurrency(duration_seconds=100.0):
            print(f"t={elapsed:.1f}s -> {users} users")
    """

    @abstractmethod
    def iter_concurrency(
        self,
        duration_seconds: float,
        tick_interval: float = 1.0,
    ) -> Iterator[tuple[float, int]]:
        """Yield ``(elapsed_seconds, target_concurrency)`` at each tick.

        Args:
            duration_seconds: Total duration to generate ticks for.
            tick_interval: Seconds between each yielded tick.  Defaults to 1.0.

        Yields:
            A tuple of ``(elapsed_seconds, target_concurrency)``.
        """

    @abstractmethod
    def target_at(self, elapsed: float) -> int:
        """Return the target VU count at *elapsed* seconds."""

    def lowest_target(self, start: float, end: float) -> int:
        """Return the lowest target reached anywhere in ``[start, end]``.

        The default assumes the target moves monotonically between the two
        points; schedules with interior turning points override it.
        """
        return min(self.target_at(start), self.target_at(end))

    @abstractmethod
    def describe(self) -> str:
        """Return a short human-readable description for logs and summaries."""

    @property
    def total_duration(self) -> float | None:
        """Return the natural length of the schedule, or None if unbounded.

        Schedules without an intrinsic end (a constant VU count) return None
        and must be given an explicit duration.
        """
        return None

    def peak_concurrency(self, duration_seconds: float, tick_interval: float = 1.0) -> int:
        """Return the highest target this pattern reaches within *duration_seconds*.

        Args:
            duration_seconds: Duration to inspect.
            tick_interval: Tick interval used for sampling.

        Returns:
            Maximum concurrency value, or 0 if the pattern yields nothing.
        """
        return max(
            (users for _, users in self.iter_concurrency(duration_seconds, tick_interval)),
            default=0,
        )


def _validate_positive(value: float, name: str) -> None:
    """Raise :class:`ConfigError` if *value* is not strictly positive."""
    if value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ConfigError(msg)


def _validate_non_negative(value: float, name: str) -> None:
    """Raise :class:`ConfigError` if *value* is negative."""
    if value < 0:
        msg = f"{name} must be non-negative, got {value}"
        raise ConfigError(msg)
