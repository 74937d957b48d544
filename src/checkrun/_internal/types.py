"""Shared type aliases for checkrun."""

from __future__ import annotations

# HTTP headers dictionary.
Headers = dict[str, str]

# Set of HTTP status codes treated as a passing response.
StatusSet = frozenset[int]
