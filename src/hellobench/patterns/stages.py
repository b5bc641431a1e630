"""Staged ramp schedule: sequential ``(duration, target)`` stages.

Each stage linearly moves the virtual-user target from where the previous
stage ended to its own target over its duration.  Durations accept the
compact notation used by load-testing tools (``"500ms"``, ``"30s"``,
``"5m"``, ``"1h30m"``) or plain seconds.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hellobench._internal.errors import ConfigError
from hellobench.patterns.base import LoadPattern, _validate_non_negative, _validate_positive

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass(frozen=True)
class Stage:
    """One ramp stage.

    Attributes:
        duration: Stage length in seconds.
        target: Virtual-user count reached at the end of the stage.
    """

    duration: float
    target: int


def parse_duration(value: str | float) -> float:
    """Convert a duration such as ``"1m30s"`` or ``90`` to seconds.

    Args:
        value: A number of seconds, a numeric string, or a sequence of
            ``<number><unit>`` parts with units ``ms``, ``s``, ``m``, ``h``.

    Returns:
        The duration in seconds.

    Raises:
        ConfigError: If the value is malformed or negative.
    """
    if isinstance(value, int | float):
        _validate_non_negative(value, "duration")
        return float(value)

    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        _validate_non_negative(seconds, "duration")
        return seconds

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        msg = f"Invalid duration {value!r}; expected e.g. '30s', '5m', '1h30m' or seconds"
        raise ConfigError(msg)
    return total


def parse_stage(spec: str) -> Stage:
    """Parse a ``"<duration>:<target>"`` string such as ``"5m:200"``.

    Raises:
        ConfigError: If the string is not in that form.
    """
    duration_part, sep, target_part = spec.partition(":")
    if not sep:
        msg = f"Invalid stage {spec!r}; expected '<duration>:<target>', e.g. '5m:200'"
        raise ConfigError(msg)
    try:
        target = int(target_part)
    except ValueError:
        msg = f"Stage target must be an integer, got: {target_part!r}"
        raise ConfigError(msg) from None
    return _make_stage(parse_duration(duration_part), target)


def _make_stage(duration: float, target: int) -> Stage:
    _validate_non_negative(duration, "stage duration")
    _validate_non_negative(target, "stage target")
    return Stage(duration=duration, target=target)


def to_stage(stage: Stage | tuple[str | float, int]) -> Stage:
    """Normalise a ``Stage`` or ``(duration, target)`` tuple into a validated ``Stage``."""
    if isinstance(stage, Stage):
        return _make_stage(stage.duration, stage.target)
    duration, target = stage
    return _make_stage(parse_duration(duration), target)


class StagedPattern(LoadPattern):
    """Run ramp stages back to back.

    Within a stage the target is interpolated linearly from the previous
    stage's target (or *start_users* for the first stage) and floored, so
    the number of live virtual users never exceeds the interpolated value.
    A zero-length stage jumps straight to its target.  Once every stage has
    elapsed the last target holds.

    Args:
        stages: ``Stage`` objects or ``(duration, target)`` tuples, where the
            duration may be a string such as ``"5m"``.  At least one stage
            is required and the total duration must be positive.
        start_users: Virtual users at ``t=0``.  Defaults to 1.

    Raises:
        ConfigError: If the stages are empty or invalid.

    Example::

        pattern = StagedPattern([("5m", 200), ("10m", 1000), ("5m", 0)])
        pattern.total_duration  # 1200.0
        pattern.target_at(150.0)  # 100
    """

    def __init__(
        self,
        stages: Sequence[Stage | tuple[str | float, int]],
        start_users: int = 1,
    ) -> None:
        if not stages:
            msg = "stages must contain at least one (duration, target) entry"
            raise ConfigError(msg)
        _validate_non_negative(start_users, "start_users")
        self._stages = [to_stage(s) for s in stages]
        self._start_users = start_users
        _validate_positive(self.total_duration, "total stage duration")

    @property
    def stages(self) -> list[Stage]:
        """Return a copy of the normalised stages."""
        return list(self._stages)

    @property
    def total_duration(self) -> float:
        """Return the sum of all stage durations in seconds."""
        return sum(stage.duration for stage in self._stages)

    @property
    def max_users(self) -> int:
        """Return the highest target any stage reaches."""
        return max(self._start_users, *(stage.target for stage in self._stages))

    def target_at(self, elapsed: float) -> int:
        """Return the floored target VU count at *elapsed* seconds."""
        previous = self._start_users
        offset = 0.0
        for stage in self._stages:
            end = offset + stage.duration
            if elapsed < end:
                fraction = (elapsed - offset) / stage.duration
                return max(math.floor(previous + (stage.target - previous) * fraction), 0)
            previous = stage.target
            offset = end
        return previous

    def lowest_target(self, start: float, end: float) -> int:
        """Return the lowest target in ``[start, end]``.

        Stage boundaries inside the window are turning points: a ramp down
        followed by a ramp up bottoms out at the boundary, not at either end.
        """
        lowest = super().lowest_target(start, end)
        offset = 0.0
        for stage in self._stages:
            offset += stage.duration
            if start < offset < end:
                lowest = min(lowest, stage.target)
        return lowest

    def iter_concurrency(
        self,
        duration_seconds: float,
        tick_interval: float = 1.0,
    ) -> Iterator[tuple[float, int]]:
        """Yield ``(elapsed, target_at(elapsed))`` up to *duration_seconds*.

        Pass :attr:`total_duration` to cover exactly the configured stages.
        """
        _validate_positive(duration_seconds, "duration_seconds")
        _validate_positive(tick_interval, "tick_interval")
        tick = 0
        elapsed = 0.0
        while elapsed <= duration_seconds:
            yield (elapsed, self.target_at(elapsed))
            tick += 1
            elapsed = tick * tick_interval

    def describe(self) -> str:
        """Return a human-readable description listing every stage."""
        header = (
            f"Staged: {len(self._stages)} stages over {self.total_duration:g}s, "
            f"peak {self.max_users} users"
        )
        lines = [
            f"  {i + 1}. {stage.duration:g}s -> {stage.target} users"
            for i, stage in enumerate(self._stages)
        ]
        return "\n".join([header, *lines])
