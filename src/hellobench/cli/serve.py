"""``hellobench serve``: run the hello-world echo server."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console

from hellobench._internal.config import resolve_server_config
from hellobench._internal.errors import HelloBenchError
from hellobench._internal.logging import setup_logging
from hellobench.server.app import EchoServer

console = Console(stderr=True)


def serve_cmd(
    port: int | None = typer.Argument(
        None,
        help="Port to listen on (default: $HELLOBENCH_PORT, then $PORT).",
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        "-H",
        help="Interface to bind (default: $HELLOBENCH_HOST or 0.0.0.0).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as one JSON object per line.",
    ),
) -> None:
    """Serve ``GET /`` with a greeting naming the port, logging each caller's IP."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=json_logs,
    )

    try:
        config = resolve_server_config(port=port, host=host)
        asyncio.run(EchoServer(config).serve_forever())
    except HelloBenchError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
