"""Named boolean checks evaluated once per iteration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from checkrun._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping

logger = get_logger("dsl.checks")

# Label of the status check every products iteration reports under.
STATUS_CHECK = "status is valid"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one named check in one iteration.

    Attributes:
        name: Check label, e.g. ``"status is valid"``.
        passed: Whether the predicate held.
        vu_id: Virtual user that evaluated the check.
        iteration: Iteration number within the run (0-based).
    """

    name: str
    passed: bool
    vu_id: int = 0
    iteration: int = 0


def status_in(statuses: Collection[int]) -> Callable[[Any], bool]:
    """Build a predicate that passes when ``response.status`` is accepted.

    Membership is exact: a 404 does not pass because 400-range codes are
    absent, and neither does a 301 or 401.

    Args:
        statuses: Accepted HTTP status codes.

    Returns:
        A predicate over any object exposing a ``status`` attribute.
    """
    accepted = frozenset(statuses)

    def _predicate(response: Any) -> bool:
        return response.status in accepted

    return _predicate


def run_checks(
    value: Any,
    checks: Mapping[str, Callable[[Any], bool]],
    *,
    callback: Callable[[CheckResult], None],
    vu_id: int = 0,
    iteration: int = 0,
) -> bool:
    """Evaluate every predicate against ``value`` and report each outcome.

    A predicate that raises counts as failed; the exception is logged and
    does not abort the iteration.

    Args:
        value: The object under test, usually an HTTP response.
        checks: Mapping of check label to predicate.
        callback: Receives one ``CheckResult`` per label.
        vu_id: Virtual user tag for the results.
        iteration: Iteration tag for the results.

    Returns:
        True if every check passed.
    """
    all_passed = True
    for name, predicate in checks.items():
        try:
            passed = bool(predicate(value))
        except Exception:
            logger.debug("Check %r raised, counting as failed", name, exc_info=True)
            passed = False
        all_passed = all_passed and passed
        callback(CheckResult(name=name, passed=passed, vu_id=vu_id, iteration=iteration))
    return all_passed
