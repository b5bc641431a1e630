"""Virtual-user schedules for the load generator.

Every schedule implements :class:`LoadPattern` and yields
``(elapsed_seconds, target_concurrency)`` tuples via :meth:`iter_concurrency`.
"""

from __future__ import annotations

from hellobench.patterns.base import LoadPattern
from hellobench.patterns.constant import ConstantPattern
from hellobench.patterns.ramp import RampPattern
from hellobench.patterns.stages import (
    Stage,
    StagedPattern,
    parse_duration,
    parse_stage,
    to_stage,
)

__all__ = [
    "ConstantPattern",
    "LoadPattern",
    "RampPattern",
    "Stage",
    "StagedPattern",
    "parse_duration",
    "parse_stage",
    "to_stage",
]
