"""SIGINT/SIGTERM wiring shared by the echo server and the load session."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_stop_handlers(on_signal: Callable[[], None]) -> None:
    """Call *on_signal* on the running loop when SIGINT or SIGTERM arrives."""
    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in _STOP_SIGNALS:
            loop.add_signal_handler(sig, on_signal)
    else:
        # No add_signal_handler on Windows event loops
        for sig in _STOP_SIGNALS:
            signal.signal(sig, lambda _s, _f: loop.call_soon_threadsafe(on_signal))


def remove_stop_handlers() -> None:
    """Restore default SIGINT/SIGTERM handling."""
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in _STOP_SIGNALS:
            loop.remove_signal_handler(sig)
    else:
        signal.signal(signal.SIGINT, signal.default_int_handler)
        signal.signal(signal.SIGTERM, signal.SIG_DFL)
