"""In-memory metric collection for a single run."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

import numpy as np

from checkrun._internal.logging import get_logger
from checkrun.metrics.models import CheckMetrics, RunSummary

if TYPE_CHECKING:
    from checkrun.dsl.checks import CheckResult
    from checkrun.dsl.http_client import RequestMetric

logger = get_logger("metrics.collector")


def _compute_percentiles(
    latencies: list[float],
) -> tuple[float, float, float, float, float, float, float]:
    """Compute latency statistics from a list of latency values.

    Args:
        latencies: Latency values in milliseconds.

    Returns:
        Tuple of (min, max, avg, p50, p90, p95, p99).
    """
    if not latencies:
        return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    arr = np.array(latencies, dtype=np.float64)
    percentiles = np.percentile(arr, [50.0, 90.0, 95.0, 99.0])

    return (
        float(np.min(arr)),
        float(np.max(arr)),
        float(np.mean(arr)),
        float(percentiles[0]),
        float(percentiles[1]),
        float(percentiles[2]),
        float(percentiles[3]),
    )


class MetricCollector:
    """Collects request metrics, check results and iteration outcomes.

    All virtual users run on one event loop, so the record methods are
    plain appends. ``record`` and ``record_check`` are shaped to be passed
    directly as the HTTP client's metric callback and the iteration
    context's check callback.
    """

    def __init__(self) -> None:
        """Initialize an empty collector."""
        self._requests: list[RequestMetric] = []
        self._checks: list[CheckResult] = []
        self._iterations = 0
        self._iteration_errors: dict[str, int] = defaultdict(int)

    @property
    def request_count(self) -> int:
        """Return the number of requests recorded so far."""
        return len(self._requests)

    @property
    def check_count(self) -> int:
        """Return the number of check results recorded so far."""
        return len(self._checks)

    def record(self, metric: RequestMetric) -> None:
        """Record one HTTP request metric."""
        self._requests.append(metric)

    def record_check(self, result: CheckResult) -> None:
        """Record one check outcome."""
        self._checks.append(result)

    def record_iteration(self, error: BaseException | None = None) -> None:
        """Record the end of an iteration.

        Args:
            error: The exception the iteration body raised, or None if it
                returned normally.
        """
        if error is None:
            self._iterations += 1
        else:
            self._iteration_errors[type(error).__name__] += 1

    def summarize(self, elapsed_seconds: float) -> RunSummary:
        """Aggregate everything recorded so far into a ``RunSummary``.

        Args:
            elapsed_seconds: Duration the summary covers, used for RPS.

        Returns:
            The aggregated summary. The collector keeps its state.
        """
        checks: dict[str, CheckMetrics] = {}
        for result in self._checks:
            tally = checks.setdefault(result.name, CheckMetrics(name=result.name))
            if result.passed:
                tally.passes += 1
            else:
                tally.fails += 1

        status_counts: dict[int, int] = defaultdict(int)
        request_errors = 0
        for metric in self._requests:
            if metric.error is not None and metric.status_code == 0:
                request_errors += 1
            else:
                status_counts[metric.status_code] += 1

        (
            lat_min,
            lat_max,
            lat_avg,
            lat_p50,
            lat_p90,
            lat_p95,
            lat_p99,
        ) = _compute_percentiles([m.latency_ms for m in self._requests])

        total_requests = len(self._requests)
        logger.debug(
            "Summarizing %d requests, %d checks, %d iterations",
            total_requests,
            len(self._checks),
            self._iterations,
        )
        interval = max(elapsed_seconds, 0.001)

        return RunSummary(
            elapsed_seconds=elapsed_seconds,
            iterations=self._iterations,
            iteration_errors=sum(self._iteration_errors.values()),
            total_requests=total_requests,
            request_errors=request_errors,
            requests_per_second=total_requests / interval,
            latency_min=lat_min,
            latency_max=lat_max,
            latency_avg=lat_avg,
            latency_p50=lat_p50,
            latency_p90=lat_p90,
            latency_p95=lat_p95,
            latency_p99=lat_p99,
            status_counts=dict(sorted(status_counts.items())),
            errors_by_type=dict(self._iteration_errors),
            checks=checks,
        )

    def reset(self) -> None:
        """Clear all internal state. Primarily for testing."""
        self._requests.clear()
        self._checks.clear()
        self._iterations = 0
        self._iteration_errors.clear()
