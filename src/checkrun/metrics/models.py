"""Run result dataclasses for checkrun."""

from __future__ import annotations

from dataclasses import dataclass, field

# CheckResult and RequestMetric live in the DSL modules that emit them.
# Re-exported here so consumers can import every model from one place.
from checkrun.dsl.checks import CheckResult
from checkrun.dsl.http_client import RequestMetric

__all__ = [
    "CheckMetrics",
    "CheckResult",
    "RequestMetric",
    "RunResult",
    "RunSummary",
]


@dataclass
class CheckMetrics:
    """Pass/fail tally for one check label.

    Attributes:
        name: Check label.
        passes: Number of iterations where the check held.
        fails: Number of iterations where it did not.
    """

    name: str
    passes: int = 0
    fails: int = 0

    @property
    def total(self) -> int:
        """Return passes plus fails."""
        return self.passes + self.fails

    @property
    def pass_rate(self) -> float:
        """Return the passing fraction (0.0 when nothing was checked)."""
        return self.passes / self.total if self.total else 0.0


@dataclass
class RunSummary:
    """Aggregate view of a finished (or stopped) run.

    Attributes:
        elapsed_seconds: Wall-clock duration the summary covers.
        iterations: Iterations whose body returned normally.
        iteration_errors: Iterations whose body raised.
        total_requests: HTTP requests attempted.
        request_errors: Requests that failed at the transport level.
        requests_per_second: ``total_requests / elapsed_seconds``.
        latency_min: Minimum latency in milliseconds.
        latency_max: Maximum latency in milliseconds.
        latency_avg: Mean latency in milliseconds.
        latency_p50: 50th percentile latency (ms).
        latency_p90: 90th percentile latency (ms).
        latency_p95: 95th percentile latency (ms).
        latency_p99: 99th percentile latency (ms).
        status_counts: Responses received, keyed by HTTP status code.
        errors_by_type: Iteration errors keyed by exception type name.
        checks: Per-label check tallies, in first-seen order.
    """

    elapsed_seconds: float
    iterations: int = 0
    iteration_errors: int = 0
    total_requests: int = 0
    request_errors: int = 0
    requests_per_second: float = 0.0
    latency_min: float = 0.0
    latency_max: float = 0.0
    latency_avg: float = 0.0
    latency_p50: float = 0.0
    latency_p90: float = 0.0
    latency_p95: float = 0.0
    latency_p99: float = 0.0
    status_counts: dict[int, int] = field(default_factory=dict)
    errors_by_type: dict[str, int] = field(default_factory=dict)
    checks: dict[str, CheckMetrics] = field(default_factory=dict)

    @property
    def checks_passed(self) -> int:
        """Return passes summed over every check label."""
        return sum(c.passes for c in self.checks.values())

    @property
    def checks_failed(self) -> int:
        """Return fails summed over every check label."""
        return sum(c.fails for c in self.checks.values())

    @property
    def check_failure_rate(self) -> float:
        """Return the failing fraction of all checks (0.0 when none ran)."""
        total = self.checks_passed + self.checks_failed
        return self.checks_failed / total if total else 0.0


@dataclass
class RunResult:
    """Complete result of a run.

    Attributes:
        scenario_name: Name of the scenario that was executed.
        vus: Virtual users actually started.
        iterations_planned: Iterations the run was configured for.
        start_time: Monotonic time when the run started.
        end_time: Monotonic time when the run completed.
        duration_seconds: Total wall-clock duration.
        interrupted: True if the run stopped before all iterations were
            claimed (signal or max duration).
        summary: Aggregate metrics for the whole run.
    """

    scenario_name: str
    vus: int
    iterations_planned: int
    start_time: float
    end_time: float
    duration_seconds: float
    interrupted: bool = False
    summary: RunSummary | None = None
