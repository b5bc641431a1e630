"""hellobench: a hello-world echo server and a staged HTTP load generator."""

from __future__ import annotations

from hellobench.dsl.decorators import scenario, setup, task, teardown
from hellobench.dsl.http_client import CheckMetric, FailedResponse, HttpClient, RequestMetric
from hellobench.patterns.base import LoadPattern
from hellobench.patterns.constant import ConstantPattern
from hellobench.patterns.ramp import RampPattern
from hellobench.patterns.stages import Stage, StagedPattern

__version__ = "0.1.0"

__all__ = [
    "CheckMetric",
    "ConstantPattern",
    "FailedResponse",
    "HttpClient",
    "LoadPattern",
    "RampPattern",
    "RequestMetric",
    "Stage",
    "StagedPattern",
    "scenario",
    "setup",
    "task",
    "teardown",
]
