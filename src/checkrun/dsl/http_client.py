"""Instrumented HTTP client with auto-timing and metric emission."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

if TYPE_CHECKING:
    from collections.abc import Callable

    from checkrun._internal.types import Headers


def _noop_callback(metric: RequestMetric) -> None:
    """Default no-op metric callback."""


@dataclass
class RequestMetric:
    """Raw metric emitted for every HTTP request.

    Attributes:
        timestamp: Monotonic timestamp when the request started.
        name: Logical name for metric grouping (e.g., "products").
        method: HTTP method.
        url: Full request URL.
        status_code: HTTP response status code (0 if the request failed).
        latency_ms: Time until the full body was read, in milliseconds.
        content_length: Response body size in bytes.
        error: Error message if the request failed, None otherwise.
        vu_id: Virtual user that made the request.
    """

    timestamp: float
    name: str
    method: str
    url: str
    status_code: int
    latency_ms: float
    content_length: int
    error: str | None = None
    vu_id: int = 0


class HttpClient:
    """Instrumented async HTTP client wrapping ``aiohttp.ClientSession``.

    Every request is timed and reported through ``metric_callback``. The
    response body is always read before the metric is emitted, so the
    returned response can be inspected after the connection is released.

    Attributes:
        base_url: Prefix for request paths. Empty means paths are absolute
            URLs.
        headers: Headers applied to every request.
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Headers | None = None,
        metric_callback: Callable[[RequestMetric], None] | None = None,
        vu_id: int = 0,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Prefix for request paths.
            headers: Default headers applied to every request.
            metric_callback: Invoked with a ``RequestMetric`` after each
                request. Defaults to a no-op.
            vu_id: Virtual user identifier for metric tagging.
            timeout: Total request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.headers: Headers = dict(headers or {})
        self._metric_callback = metric_callback or _noop_callback
        self._vu_id = vu_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(
        self,
        path: str,
        *,
        headers: Headers | None = None,
        name: str | None = None,
    ) -> aiohttp.ClientResponse:
        """Send a GET request without body or retries.

        Args:
            path: URL path appended to base_url, or an absolute URL when
                base_url is empty.
            headers: Extra headers for this request only. They override
                the client's default headers.
            name: Logical name for metric grouping. Defaults to the path.

        Returns:
            The aiohttp response, with its body already read.
        """
        return await self._request("GET", path, headers=headers, name=name)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Headers | None = None,
        name: str | None = None,
    ) -> aiohttp.ClientResponse:
        """Send an HTTP request with auto-timing and metric emission.

        Transport errors and cancellation are recorded in the emitted
        metric and then re-raised unchanged.

        Raises:
            RuntimeError: If the client is used outside of an async context
                manager.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        url = f"{self.base_url}{path}"
        metric_name = name or path
        merged_headers = {**self.headers, **(headers or {})}

        start = time.monotonic()
        status_code = 0
        content_length = 0
        error: str | None = None

        try:
            resp = await self._session.request(method, url, headers=merged_headers)
            status_code = resp.status
            body = await resp.read()
            content_length = len(body)
        except BaseException as exc:
            # Cancellation too: a cut-off request must not read as a status 0 response
            error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            latency_ms = (time.monotonic() - start) * 1000
            self._metric_callback(
                RequestMetric(
                    timestamp=start,
                    name=metric_name,
                    method=method,
                    url=url,
                    status_code=status_code,
                    latency_ms=latency_ms,
                    content_length=content_length,
                    error=error,
                    vu_id=self._vu_id,
                )
            )

        return resp
