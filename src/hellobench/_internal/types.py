"""Shared type aliases for hellobench."""

from __future__ import annotations

# HTTP headers dictionary.
Headers = dict[str, str]

# Pause range (min_seconds, max_seconds) between iterations.
ThinkTime = tuple[float, float]
