"""Tests for JSON summary export."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from checkrun.metrics.export import result_to_dict, write_summary_json
from checkrun.metrics.models import CheckMetrics, RunResult, RunSummary

if TYPE_CHECKING:
    from pathlib import Path


def _make_result() -> RunResult:
    summary = RunSummary(
        elapsed_seconds=2.0,
        iterations=49,
        iteration_errors=1,
        total_requests=50,
        request_errors=1,
        status_counts={200: 40, 503: 9},
        errors_by_type={"ServerDisconnectedError": 1},
        checks={"status is valid": CheckMetrics(name="status is valid", passes=49)},
    )
    return RunResult(
        scenario_name="products",
        vus=1,
        iterations_planned=50,
        start_time=10.0,
        end_time=12.0,
        duration_seconds=2.0,
        summary=summary,
    )


def test_result_to_dict_adds_derived_fields():
    data = result_to_dict(_make_result())

    assert data["scenario_name"] == "products"
    assert data["summary"]["checks_passed"] == 49
    assert data["summary"]["checks_failed"] == 0
    assert data["summary"]["checks"]["status is valid"]["pass_rate"] == 1.0
    assert data["summary"]["status_counts"] == {"200": 40, "503": 9}


def test_result_without_summary():
    result = _make_result()
    result.summary = None
    assert result_to_dict(result)["summary"] is None


def test_write_summary_json_creates_parents(tmp_path: Path):
    out = write_summary_json(_make_result(), tmp_path / "nested" / "summary.json")

    assert out.exists()
    data = json.loads(out.read_text())
    assert data["iterations_planned"] == 50
    assert data["summary"]["iteration_errors"] == 1
