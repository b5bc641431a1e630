"""Configuration resolution for the echo server and the load generator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hellobench._internal.errors import ConfigError

if TYPE_CHECKING:
    from hellobench._internal.types import Headers

_MIN_PORT = 1
_MAX_PORT = 65535


@dataclass(frozen=True)
class ServerConfig:
    """Resolved echo server configuration.

    Attributes:
        port: TCP port to listen on.
        host: Interface to bind. Defaults to all interfaces.
    """

    port: int
    host: str = "0.0.0.0"  # noqa: S104


@dataclass(frozen=True)
class HelloBenchConfig:
    """Global load generator configuration.

    Attributes:
        default_base_url: Base URL that overrides the one declared by a
            scenario. Empty means "use the scenario's".
        default_headers: Default HTTP headers for all requests.
        connection_pool_size: Maximum connections per virtual user session.
        request_timeout: Request timeout in seconds.
    """

    default_base_url: str = ""
    default_headers: Headers = field(default_factory=dict)
    connection_pool_size: int = 100
    request_timeout: float = 30.0


def _parse_port(raw: int | str, source: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        msg = f"{source} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None

    if not _MIN_PORT <= port <= _MAX_PORT:
        msg = f"{source} must be between {_MIN_PORT} and {_MAX_PORT}, got: {port}"
        raise ConfigError(msg)
    return port


def resolve_server_config(
    port: int | str | None = None,
    host: str | None = None,
) -> ServerConfig:
    """Resolve the echo server configuration once, at startup.

    The port comes from the *port* argument when given, otherwise from
    ``HELLOBENCH_PORT``, otherwise from ``PORT``. The host comes from *host*,
    then ``HELLOBENCH_HOST``, then defaults to ``0.0.0.0``.

    Args:
        port: Port supplied on the command line, if any.
        host: Host supplied on the command line, if any.

    Returns:
        A validated ServerConfig.

    Raises:
        ConfigError: If no port is supplied or the value is not a valid
            TCP port number.
    """
    if port is not None:
        resolved_port = _parse_port(port, "port")
    elif "HELLOBENCH_PORT" in os.environ:
        resolved_port = _parse_port(os.environ["HELLOBENCH_PORT"], "HELLOBENCH_PORT")
    elif "PORT" in os.environ:
        resolved_port = _parse_port(os.environ["PORT"], "PORT")
    else:
        msg = "No port configured: pass PORT on the command line or set HELLOBENCH_PORT"
        raise ConfigError(msg)

    resolved_host = host or os.environ.get("HELLOBENCH_HOST") or ServerConfig.host
    return ServerConfig(port=resolved_port, host=resolved_host)


def load_config() -> HelloBenchConfig:
    """Load load-generator configuration from environment variables.

    Environment variables:
        HELLOBENCH_BASE_URL: Base URL override for scenarios.
        HELLOBENCH_POOL_SIZE: Connection pool size (default: 100).
        HELLOBENCH_TIMEOUT: Request timeout in seconds (default: 30.0).

    Returns:
        Populated HelloBenchConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    pool_size_str = os.environ.get("HELLOBENCH_POOL_SIZE", "100")
    timeout_str = os.environ.get("HELLOBENCH_TIMEOUT", "30.0")

    try:
        pool_size = int(pool_size_str)
    except ValueError:
        msg = f"HELLOBENCH_POOL_SIZE must be an integer, got: {pool_size_str!r}"
        raise ConfigError(msg) from None

    if pool_size < 1:
        msg = f"HELLOBENCH_POOL_SIZE must be >= 1, got: {pool_size}"
        raise ConfigError(msg)

    try:
        timeout = float(timeout_str)
    except ValueError:
        msg = f"HELLOBENCH_TIMEOUT must be a number, got: {timeout_str!r}"
        raise ConfigError(msg) from None

    if timeout <= 0:
        msg = f"HELLOBENCH_TIMEOUT must be positive, got: {timeout}"
        raise ConfigError(msg)

    return HelloBenchConfig(
        default_base_url=os.environ.get("HELLOBENCH_BASE_URL", ""),
        connection_pool_size=pool_size,
        request_timeout=timeout,
    )
