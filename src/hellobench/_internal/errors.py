"""Custom exception hierarchy for hellobench."""

from __future__ import annotations


class HelloBenchError(Exception):
    """Base exception for all hellobench errors.

    Both the echo server and the load generator raise subclasses of this
    class, so a single except clause catches any hellobench-specific error.
    """


class ScenarioError(HelloBenchError):
    """Raised when a scenario definition is invalid.

    Examples:
        - A class decorated with @scenario has no @task methods.
        - A @task method is not a coroutine function.
        - A scenario file cannot be loaded or parsed.
    """


class ConfigError(HelloBenchError):
    """Raised when configuration is invalid or missing.

    Examples:
        - No listening port was supplied to the echo server.
        - An environment variable holds a non-numeric value.
        - A ramp stage has a negative target or a malformed duration.
    """


class EngineError(HelloBenchError):
    """Raised when the load engine cannot start or fails mid-run."""


class ServerError(HelloBenchError):
    """Raised when the echo server cannot bind its configured address.

    Startup failures are fatal: the CLI reports them and exits non-zero
    without retrying.
    """
