"""Logging for the echo server and the load generator.

Everything logs under the ``hellobench`` namespace to stderr, either as
plain lines or as one JSON object per line (``--json-logs``).  Request
context such as the requester's IP travels through ``extra=`` and is only
rendered by the JSON formatter.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

ROOT_LOGGER = "hellobench"

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s | %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# extra= keys rendered by the JSON formatter
_EXTRA_FIELDS = ("client_ip", "port", "scenario")


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, known extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in _EXTRA_FIELDS if hasattr(record, key)
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Attach the stderr handler to the ``hellobench`` logger.

    Safe to call more than once: later calls only change the level, so
    tests and CLI commands can call it freely without stacking handlers.

    Args:
        level: Threshold for the logger and its handler.
        json_format: Emit JSON lines instead of plain text.  Only honoured
            on the first call.

    Returns:
        The ``hellobench`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_format))
    logger.addHandler(handler)

    # aiohttp configures its own loggers; keep ours off the root
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``hellobench.<name>``, e.g. ``get_logger("server.app")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
