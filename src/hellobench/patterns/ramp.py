"""Single linear ramp between two virtual-user counts."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from hellobench._internal.errors import ConfigError
from hellobench.patterns.base import LoadPattern, _validate_non_negative, _validate_positive

if TYPE_CHECKING:
    from collections.abc import Iterator


class RampPattern(LoadPattern):
    """Linearly ramp virtual users from *start_users* to *end_users*.

    During ``0`` to ``ramp_duration`` the target moves linearly and is
    floored, so the live VU count never overshoots the line.  After the ramp
    the target holds at *end_users* for the rest of *duration_seconds*.

    Args:
        start_users: Initial number of virtual users.  Must be >= 0.
        end_users: Final number of virtual users.  Must be >= 0.
        ramp_duration: Seconds over which the ramp occurs.  Must be > 0.

    Raises:
        ConfigError: If any argument is out of range.

    Example::

        pattern = RampPattern(start_users=0, end_users=100, ramp_duration=60.0)
        ticks = list(pattern.iter_concurrency(duration_seconds=120.0))
        assert ticks[30][1] == 50
        assert ticks[90][1] == 100  # holds after the ramp
    """

    def __init__(
        self,
        start_users: int,
        end_users: int,
        ramp_duration: float,
    ) -> None:
        _validate_non_negative(start_users, "start_users")
        _validate_non_negative(end_users, "end_users")
        _validate_positive(ramp_duration, "ramp_duration")
        if start_users == end_users:
            msg = "start_users and end_users must differ; use ConstantPattern for fixed concurrency"
            raise ConfigError(msg)
        self._start_users = start_users
        self._end_users = end_users
        self._ramp_duration = ramp_duration

    def target_at(self, elapsed: float) -> int:
        """Return the floored ramp value at *elapsed*, or *end_users* once the ramp is over."""
        if elapsed >= self._ramp_duration:
            return self._end_users
        fraction = max(elapsed, 0.0) / self._ramp_duration
        users = math.floor(self._start_users + (self._end_users - self._start_users) * fraction)
        return max(users, 0)

    def iter_concurrency(
        self,
        duration_seconds: float,
        tick_interval: float = 1.0,
    ) -> Iterator[tuple[float, int]]:
        """Yield ``(elapsed, target_concurrency)`` along the ramp, then hold."""
        _validate_positive(duration_seconds, "duration_seconds")
        _validate_positive(tick_interval, "tick_interval")
        elapsed = 0.0
        while elapsed <= duration_seconds:
            yield (elapsed, self.target_at(elapsed))
            elapsed += tick_interval

    def describe(self) -> str:
        """Return a human-readable description."""
        return f"Ramp: {self._start_users} -> {self._end_users} users over {self._ramp_duration}s"
