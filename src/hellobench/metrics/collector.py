"""In-memory metric collection for a load run."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from hellobench._internal.logging import get_logger
from hellobench.metrics.models import CheckSummary, EndpointMetrics, MetricSnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hellobench.dsl.http_client import CheckMetric, RequestMetric

logger = get_logger("metrics.collector")

_PERCENTILES = [50.0, 90.0, 95.0, 99.0]


class LatencyStats(NamedTuple):
    """Latency distribution of a batch of requests, in milliseconds."""

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0

    @classmethod
    def of(cls, latencies: list[float]) -> LatencyStats:
        """Summarise *latencies*; an empty batch yields all zeros."""
        if not latencies:
            return cls()
        arr = np.asarray(latencies, dtype=np.float64)
        p50, p90, p95, p99 = (float(v) for v in np.percentile(arr, _PERCENTILES))
        return cls(float(arr.min()), float(arr.max()), float(arr.mean()), p50, p90, p95, p99)


def _is_error(metric: RequestMetric) -> bool:
    return metric.error is not None or metric.status_code >= 400


def _tally_checks(checks: Iterable[CheckMetric]) -> dict[str, CheckSummary]:
    tallies: dict[str, CheckSummary] = {}
    for check in checks:
        summary = tallies.setdefault(check.name, CheckSummary(name=check.name))
        if check.passed:
            summary.passes += 1
        else:
            summary.fails += 1
    return tallies


def _endpoint_metrics(name: str, metrics: list[RequestMetric], interval: float) -> EndpointMetrics:
    errors = sum(1 for m in metrics if _is_error(m))
    stats = LatencyStats.of([m.latency_ms for m in metrics])
    return EndpointMetrics(
        name=name,
        request_count=len(metrics),
        error_count=errors,
        error_rate=errors / len(metrics),
        requests_per_second=len(metrics) / interval,
        latency_min=stats.min,
        latency_max=stats.max,
        latency_avg=stats.avg,
        latency_p50=stats.p50,
        latency_p90=stats.p90,
        latency_p95=stats.p95,
        latency_p99=stats.p99,
    )


class MetricCollector:
    """Collects request metrics, check outcomes and iteration counts.

    ``record`` and ``record_check`` are shaped to be passed as the
    ``HttpClient`` callbacks.  Everything lands in deques that ``flush``
    drains once per tick into a ``MetricSnapshot``; drained items are also
    kept for the end-of-run summary.

    Attributes:
        worker_id: Identifier the metrics were tagged with.
    """

    def __init__(self, worker_id: int = 0) -> None:
        self.worker_id = worker_id
        self._requests: deque[RequestMetric] = deque()
        self._checks: deque[CheckMetric] = deque()
        self._iterations = 0
        self._history: list[RequestMetric] = []
        self._check_history: list[CheckMetric] = []
        self._iteration_total = 0
        self._last_flush_time: float = time.monotonic()

    @property
    def pending_count(self) -> int:
        """Return how many request metrics are waiting for the next flush."""
        return len(self._requests)

    def record(self, metric: RequestMetric) -> None:
        """Buffer one request metric."""
        self._requests.append(metric)

    def record_check(self, metric: CheckMetric) -> None:
        """Buffer one check outcome."""
        self._checks.append(metric)

    def record_iteration(self) -> None:
        """Count one completed scenario iteration."""
        self._iterations += 1

    def flush(self, elapsed_seconds: float, active_users: int) -> MetricSnapshot:
        """Drain the buffers into a snapshot of the interval since the last flush.

        Args:
            elapsed_seconds: Seconds elapsed since the run started.
            active_users: Live virtual users right now.
        """
        requests = [self._requests.popleft() for _ in range(len(self._requests))]
        checks = [self._checks.popleft() for _ in range(len(self._checks))]
        iterations, self._iterations = self._iterations, 0

        self._history.extend(requests)
        self._check_history.extend(checks)
        self._iteration_total += iterations

        now = time.monotonic()
        interval = max(now - self._last_flush_time, 0.001)
        self._last_flush_time = now

        return self._build_snapshot(
            requests, checks, iterations, elapsed_seconds, active_users, interval
        )

    def get_cumulative_snapshot(self, elapsed_seconds: float, active_users: int) -> MetricSnapshot:
        """Summarise everything flushed so far without touching the buffers."""
        return self._build_snapshot(
            self._history,
            self._check_history,
            self._iteration_total,
            elapsed_seconds,
            active_users,
            max(elapsed_seconds, 0.001),
        )

    def reset(self) -> None:
        """Forget everything, buffered or flushed."""
        self._requests.clear()
        self._checks.clear()
        self._iterations = 0
        self._history.clear()
        self._check_history.clear()
        self._iteration_total = 0
        self._last_flush_time = time.monotonic()

    def _build_snapshot(
        self,
        requests: list[RequestMetric],
        checks: list[CheckMetric],
        iterations: int,
        elapsed_seconds: float,
        active_users: int,
        interval: float,
    ) -> MetricSnapshot:
        tallies = _tally_checks(checks)
        snapshot = MetricSnapshot(
            timestamp=time.monotonic(),
            elapsed_seconds=elapsed_seconds,
            active_users=active_users,
            iterations=iterations,
            checks_passed=sum(s.passes for s in tallies.values()),
            checks_failed=sum(s.fails for s in tallies.values()),
            checks=tallies,
        )
        if not requests:
            return snapshot

        by_endpoint: dict[str, list[RequestMetric]] = defaultdict(list)
        errors_by_status: dict[int, int] = defaultdict(int)
        errors_by_type: dict[str, int] = defaultdict(int)
        for metric in requests:
            by_endpoint[metric.name].append(metric)
            if not _is_error(metric):
                continue
            snapshot.total_errors += 1
            if metric.status_code >= 400:
                errors_by_status[metric.status_code] += 1
            if metric.error is not None:
                # "ClientConnectorError: ..." -> "ClientConnectorError"
                errors_by_type[metric.error.split(":")[0].strip()] += 1

        stats = LatencyStats.of([m.latency_ms for m in requests])
        snapshot.total_requests = len(requests)
        snapshot.requests_per_second = len(requests) / interval
        snapshot.latency_min = stats.min
        snapshot.latency_max = stats.max
        snapshot.latency_avg = stats.avg
        snapshot.latency_p50 = stats.p50
        snapshot.latency_p90 = stats.p90
        snapshot.latency_p95 = stats.p95
        snapshot.latency_p99 = stats.p99
        snapshot.error_rate = snapshot.total_errors / len(requests)
        snapshot.errors_by_status = dict(errors_by_status)
        snapshot.errors_by_type = dict(errors_by_type)
        snapshot.endpoints = {
            name: _endpoint_metrics(name, metrics, interval) for name, metrics in by_endpoint.items()
        }
        return snapshot
