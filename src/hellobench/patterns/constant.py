"""Constant schedule: a fixed number of virtual users."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hellobench._internal.errors import ConfigError
from hellobench.patterns.base import LoadPattern, _validate_positive

if TYPE_CHECKING:
    from collections.abc import Iterator


class ConstantPattern(LoadPattern):
    """Keep *users* virtual users busy for the entire run.

    Equivalent to running with a fixed VU count and a duration instead of
    ramp stages.

    Args:
        users: Number of concurrent virtual users.  Must be >= 1.

    Raises:
        ConfigError: If *users* < 1.
    """

    def __init__(self, users: int) -> None:
        if users < 1:
            msg = f"users must be >= 1, got {users}"
            raise ConfigError(msg)
        self._users = users

    @property
    def users(self) -> int:
        """Return the configured VU count."""
        return self._users

    def target_at(self, elapsed: float) -> int:
        return self._users

    def iter_concurrency(
        self,
        duration_seconds: float,
        tick_interval: float = 1.0,
    ) -> Iterator[tuple[float, int]]:
        """Yield ``(elapsed, users)`` at every tick up to *duration_seconds*."""
        _validate_positive(duration_seconds, "duration_seconds")
        _validate_positive(tick_interval, "tick_interval")
        elapsed = 0.0
        while elapsed <= duration_seconds:
            yield (elapsed, self.target_at(elapsed))
            elapsed += tick_interval

    def describe(self) -> str:
        """Return a human-readable description."""
        return f"Constant: {self._users} users"
