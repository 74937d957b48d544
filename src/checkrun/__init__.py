"""checkrun: authenticated request-and-check load runs as Python code."""

from __future__ import annotations

from checkrun._internal.config import RequestConfig, RunOptions
from checkrun.dsl.checks import STATUS_CHECK, CheckResult, status_in
from checkrun.dsl.decorators import scenario
from checkrun.dsl.http_client import HttpClient, RequestMetric
from checkrun.dsl.scenario import IterationContext

__version__ = "0.1.0"

__all__ = [
    "STATUS_CHECK",
    "CheckResult",
    "HttpClient",
    "IterationContext",
    "RequestConfig",
    "RequestMetric",
    "RunOptions",
    "scenario",
    "status_in",
]
