"""JSON export of run results."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from checkrun._internal.logging import get_logger

if TYPE_CHECKING:
    from checkrun.metrics.models import RunResult

logger = get_logger("metrics.export")


def result_to_dict(result: RunResult) -> dict[str, Any]:
    """Convert a run result into JSON-ready primitives.

    Check tallies gain ``pass_rate`` and the summary gains the check
    totals, since properties are not part of ``dataclasses.asdict``.
    """
    data = dataclasses.asdict(result)
    summary = result.summary
    if summary is not None:
        data["summary"]["checks_passed"] = summary.checks_passed
        data["summary"]["checks_failed"] = summary.checks_failed
        data["summary"]["status_counts"] = {
            str(code): count for code, count in summary.status_counts.items()
        }
        for name, tally in summary.checks.items():
            data["summary"]["checks"][name]["pass_rate"] = tally.pass_rate
    return data


def write_summary_json(result: RunResult, path: str | Path) -> Path:
    """Write ``result`` as indented JSON, creating parent directories.

    Args:
        result: The run result to export.
        path: Destination file.

    Returns:
        The path written.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(result_to_dict(result), indent=2) + "\n", encoding="utf-8")
    logger.info("Summary written to %s", out)
    return out
