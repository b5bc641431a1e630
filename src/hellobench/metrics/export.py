"""JSON export of end-of-run summaries."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hellobench.metrics.models import MetricSnapshot, TestResult


def _snapshot_to_dict(snapshot: MetricSnapshot) -> dict[str, Any]:
    data = asdict(snapshot)
    # JSON object keys must be strings
    data["errors_by_status"] = {str(k): v for k, v in snapshot.errors_by_status.items()}
    for name, summary in snapshot.checks.items():
        data["checks"][name]["pass_rate"] = summary.pass_rate
    return data


def result_to_dict(result: TestResult, *, include_snapshots: bool = False) -> dict[str, Any]:
    """Convert a TestResult into JSON-serialisable primitives.

    Args:
        result: Completed run result.
        include_snapshots: Also include the per-tick time series.

    Returns:
        A dict with ``scenario``, ``pattern``, ``duration_seconds`` and
        ``summary`` keys (plus ``snapshots`` when requested).
    """
    data: dict[str, Any] = {
        "scenario": result.scenario_name,
        "pattern": result.pattern_description,
        "duration_seconds": result.duration_seconds,
        "summary": (
            _snapshot_to_dict(result.final_summary) if result.final_summary is not None else None
        ),
    }
    if include_snapshots:
        data["snapshots"] = [_snapshot_to_dict(s) for s in result.snapshots]
    return data


def write_summary(
    result: TestResult,
    path: str | Path,
    *,
    include_snapshots: bool = False,
) -> Path:
    """Write the run summary as pretty-printed JSON, creating parent directories.

    Returns:
        The path written.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(result_to_dict(result, include_snapshots=include_snapshots), indent=2))
    return target
