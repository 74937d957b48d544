"""Configuration loading for checkrun."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from checkrun._internal.errors import ConfigError

if TYPE_CHECKING:
    from checkrun._internal.types import StatusSet

DEFAULT_URL = "http://localhost:8080/products"

# Pre-generated HS256 credential for the products API. Sent as-is; never
# decoded here.
DEFAULT_TOKEN = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJ1c2VyX2lkIjoxLCJlbWFpbCI6ImFobWFkQGV4YW1wbGUuY29tIiwicm9sZSI6InVzZXIiLCJleHAiOjE3NjcyMzUyNDh9."
    "dSDZKsGeE0YPfDgyQzh-q8Md_HSwSLuqI4lnM8yRZVA"
)

# 500 and 503 are accepted on purpose: the run tolerates a degraded backend.
DEFAULT_ACCEPTED_STATUSES: StatusSet = frozenset({200, 500, 503})


@dataclass(frozen=True)
class RequestConfig:
    """Static request configuration shared by every iteration.

    Attributes:
        url: Absolute URL requested on every iteration.
        token: Bearer token sent in the ``Authorization`` header.
        accepted_statuses: Status codes that make the status check pass.
        timeout: Per-request timeout in seconds.
    """

    url: str = DEFAULT_URL
    token: str = DEFAULT_TOKEN
    accepted_statuses: StatusSet = field(default=DEFAULT_ACCEPTED_STATUSES)
    timeout: float = 60.0

    def __post_init__(self) -> None:
        """Validate the request settings.

        Raises:
            ConfigError: If the URL is not http(s), the token is empty, no
                status is accepted, or the timeout is not positive.
        """
        if not self.url.startswith(("http://", "https://")):
            msg = f"url must be an http(s) URL, got: {self.url!r}"
            raise ConfigError(msg)
        if not self.token:
            msg = "token must not be empty"
            raise ConfigError(msg)
        if not self.accepted_statuses:
            msg = "accepted_statuses must not be empty"
            raise ConfigError(msg)
        if self.timeout <= 0:
            msg = f"timeout must be positive, got: {self.timeout}"
            raise ConfigError(msg)


@dataclass(frozen=True)
class RunOptions:
    """Execution options for the shared-iterations executor.

    Attributes:
        vus: Number of concurrent virtual users.
        iterations: Total iterations shared across all virtual users.
        max_duration: Hard upper bound on run time in seconds.
    """

    vus: int = 1
    iterations: int = 1
    max_duration: float = 600.0

    def __post_init__(self) -> None:
        """Validate option ranges.

        Raises:
            ConfigError: If any option is out of range.
        """
        if self.vus < 1:
            msg = f"vus must be >= 1, got: {self.vus}"
            raise ConfigError(msg)
        if self.iterations < 1:
            msg = f"iterations must be >= 1, got: {self.iterations}"
            raise ConfigError(msg)
        if self.max_duration <= 0:
            msg = f"max_duration must be positive, got: {self.max_duration}"
            raise ConfigError(msg)


def parse_status_set(value: str) -> StatusSet:
    """Parse a comma-separated list of HTTP status codes.

    Args:
        value: Text such as ``"200,500,503"``. Whitespace is ignored.

    Returns:
        The parsed status codes.

    Raises:
        ConfigError: If the list is empty or holds a value that is not an
            HTTP status code (100-599).
    """
    codes: set[int] = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            code = int(part)
        except ValueError:
            msg = f"Status code must be an integer, got: {part!r}"
            raise ConfigError(msg) from None
        if not 100 <= code <= 599:
            msg = f"Status code must be between 100 and 599, got: {code}"
            raise ConfigError(msg)
        codes.add(code)

    if not codes:
        msg = f"Accepted status set must not be empty, got: {value!r}"
        raise ConfigError(msg)

    return frozenset(codes)


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None


def load_config() -> RequestConfig:
    """Load request configuration from environment variables with defaults.

    Environment variables:
        CHECKRUN_URL: Target URL (default: http://localhost:8080/products).
        CHECKRUN_TOKEN: Bearer token (default: the bundled static token).
        CHECKRUN_ACCEPTED_STATUSES: Comma-separated codes (default: 200,500,503).
        CHECKRUN_TIMEOUT: Request timeout in seconds (default: 60.0).

    Returns:
        Populated RequestConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    url = os.environ.get("CHECKRUN_URL", DEFAULT_URL)
    token = os.environ.get("CHECKRUN_TOKEN", DEFAULT_TOKEN)

    statuses_str = os.environ.get("CHECKRUN_ACCEPTED_STATUSES")
    accepted = (
        parse_status_set(statuses_str)
        if statuses_str is not None
        else DEFAULT_ACCEPTED_STATUSES
    )

    timeout = _env_float("CHECKRUN_TIMEOUT", "60.0")

    return RequestConfig(
        url=url,
        token=token,
        accepted_statuses=accepted,
        timeout=timeout,
    )


def load_run_options() -> RunOptions:
    """Load executor options from environment variables with defaults.

    Environment variables:
        CHECKRUN_VUS: Concurrent virtual users (default: 1).
        CHECKRUN_ITERATIONS: Total iterations (default: 50).
        CHECKRUN_MAX_DURATION: Run time limit in seconds (default: 600).

    Returns:
        Populated RunOptions instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    return RunOptions(
        vus=_env_int("CHECKRUN_VUS", "1"),
        iterations=_env_int("CHECKRUN_ITERATIONS", "50"),
        max_duration=_env_float("CHECKRUN_MAX_DURATION", "600.0"),
    )
