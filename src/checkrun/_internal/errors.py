"""Custom exception hierarchy for checkrun."""

from __future__ import annotations


class CheckRunError(Exception):
    """Base exception for all checkrun errors.

    Everything raised deliberately by checkrun inherits from this class,
    so the CLI can turn any of them into a clean non-zero exit.
    """


class ScenarioError(CheckRunError):
    """Raised when a scenario definition is invalid.

    Examples:
        - A function decorated with @scenario is not a coroutine function.
        - Two scenarios are registered under the same name.
        - A scenario file cannot be loaded or contains no scenario.
    """


class ConfigError(CheckRunError):
    """Raised when configuration is invalid or missing.

    Examples:
        - An environment variable has a value that cannot be parsed.
        - The accepted status set is empty or holds a non-HTTP code.
        - A run option (vus, iterations, max duration) is out of range.
    """


class EngineError(CheckRunError):
    """Raised when the run session fails for reasons other than the target.

    Failures of the system under test (bad statuses, dropped connections)
    are recorded as results, never raised as ``EngineError``.
    """
