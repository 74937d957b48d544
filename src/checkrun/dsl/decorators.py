"""Decorator for defining checkrun scenarios."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

from checkrun._internal.config import RunOptions
from checkrun._internal.errors import ScenarioError
from checkrun.dsl.scenario import IterationFunc, ScenarioDefinition, registry

if TYPE_CHECKING:
    from collections.abc import Callable


def scenario(
    *,
    name: str,
    vus: int = 1,
    iterations: int = 1,
    max_duration: float = 600.0,
) -> Callable[[IterationFunc], ScenarioDefinition]:
    """Decorate an async iteration body as a checkrun scenario.

    The decorated function receives an ``IterationContext`` and is called
    once per iteration. ``iterations`` are shared across ``vus`` virtual
    users, each running its iterations one after another.

    Args:
        name: Human-readable name for this scenario.
        vus: Number of concurrent virtual users.
        iterations: Total iterations across all virtual users.
        max_duration: Seconds after which the run stops even if
            iterations remain.

    Returns:
        A function decorator that turns the body into a registered
        ``ScenarioDefinition``.

    Raises:
        ScenarioError: If the body is not a coroutine function.
        ConfigError: If the run options are out of range.
    """
    options = RunOptions(vus=vus, iterations=iterations, max_duration=max_duration)

    def decorator(func: IterationFunc) -> ScenarioDefinition:
        if not inspect.iscoroutinefunction(func):
            msg = f"Scenario body {func.__name__} must be an async function"
            raise ScenarioError(msg)

        definition = ScenarioDefinition(name=name, func=func, options=options)
        registry.register(definition)
        return definition

    return decorator
