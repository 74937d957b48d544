"""Scenario definitions, the per-iteration context, and the scenario registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from checkrun._internal.config import RunOptions
from checkrun.dsl.checks import CheckResult, run_checks

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from checkrun.dsl.http_client import HttpClient


def _noop_check_callback(result: CheckResult) -> None:
    """Default no-op check callback."""


@dataclass
class IterationContext:
    """Everything an iteration body may touch.

    Attributes:
        client: The virtual user's instrumented HTTP client.
        vu_id: Identifier of the virtual user running the iteration.
        iteration: Iteration number within the run (0-based, shared
            across virtual users).
    """

    client: HttpClient
    vu_id: int = 0
    iteration: int = 0
    check_callback: Callable[[CheckResult], None] = field(
        default=_noop_check_callback, repr=False
    )

    def check(self, value: Any, checks: Mapping[str, Callable[[Any], bool]]) -> bool:
        """Evaluate named checks and report them to the harness.

        Args:
            value: The object under test, usually an HTTP response.
            checks: Mapping of check label to predicate.

        Returns:
            True if every check passed.
        """
        return run_checks(
            value,
            checks,
            callback=self.check_callback,
            vu_id=self.vu_id,
            iteration=self.iteration,
        )


class IterationFunc(Protocol):
    """Protocol for async iteration bodies: ``async def body(ctx) -> None``."""

    @property
    def __name__(self) -> str:
        """Function name."""
        ...

    async def __call__(self, ctx: IterationContext) -> None:
        """Run one iteration."""
        ...


@dataclass
class ScenarioDefinition:
    """Complete definition of a runnable scenario.

    Attributes:
        name: Human-readable scenario name.
        func: Async iteration body, called once per iteration.
        options: Executor options (vus, iterations, max duration).
    """

    name: str
    func: IterationFunc
    options: RunOptions = field(default_factory=RunOptions)


class ScenarioRegistry:
    """Registry of scenarios created with the ``@scenario`` decorator.

    The registry is a module-level singleton.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._scenarios: dict[str, ScenarioDefinition] = {}

    def register(self, definition: ScenarioDefinition) -> None:
        """Register a scenario definition.

        Raises:
            ScenarioError: If a scenario with the same name is already
                registered.
        """
        from checkrun._internal.errors import ScenarioError

        if definition.name in self._scenarios:
            msg = f"Scenario {definition.name!r} is already registered"
            raise ScenarioError(msg)
        self._scenarios[definition.name] = definition

    def get(self, name: str) -> ScenarioDefinition | None:
        """Look up a scenario by name, or None if unknown."""
        return self._scenarios.get(name)

    def get_all(self) -> list[ScenarioDefinition]:
        """Return all registered scenarios."""
        return list(self._scenarios.values())

    def clear(self) -> None:
        """Remove all registered scenarios. Primarily for testing."""
        self._scenarios.clear()

    def __len__(self) -> int:
        """Return the number of registered scenarios."""
        return len(self._scenarios)


registry = ScenarioRegistry()
