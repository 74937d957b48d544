"""Shared test fixtures for the checkrun test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Mock products API
# =============================================================================


@dataclass
class ProductsServer:
    """Handle on a running mock products API.

    Attributes:
        base_url: Server origin, e.g. ``http://127.0.0.1:54321``.
        status: Status code returned by ``GET /products``. Tests may
            change it while the server runs.
        requests: Headers of every ``/products`` request received.
    """

    base_url: str = ""
    status: int = 200
    requests: list[dict[str, str]] = field(default_factory=list)

    @property
    def url(self) -> str:
        """Return the full products endpoint URL."""
        return f"{self.base_url}/products"


def _create_products_app(server: ProductsServer) -> web.Application:
    """Build the mock API: ``/products`` plus a header echo endpoint."""

    async def _products_handler(request: web.Request) -> web.Response:
        server.requests.append(dict(request.headers))
        return web.json_response(
            [{"id": 1, "name": "Keyboard", "price": 100, "stock": 3}],
            status=server.status,
        )

    async def _echo_handler(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "method": request.method,
                "path": str(request.path),
                "query": dict(request.query),
                "headers": dict(request.headers),
            }
        )

    app = web.Application()
    app.router.add_get("/products", _products_handler)
    app.router.add_route("*", "/echo{path:.*}", _echo_handler)
    return app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def products_server() -> AsyncIterator[ProductsServer]:
    """Mock products API running on the test's event loop."""
    server = ProductsServer()
    runner = web.AppRunner(_create_products_app(server))
    await runner.setup()
    port = _get_free_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    server.base_url = f"http://127.0.0.1:{port}"
    yield server
    await runner.cleanup()


@pytest.fixture
async def dropping_server_url() -> AsyncIterator[str]:
    """URL of a raw TCP server that reads the request then hangs up."""

    async def _drop(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.read(1024)
        writer.close()
        await writer.wait_closed()

    server = await asyncio.start_server(_drop, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}/products"
    server.close()
    await server.wait_closed()


@pytest.fixture
async def stalled_server_url() -> AsyncIterator[str]:
    """URL of a raw TCP server that reads the request and never answers."""
    closed = asyncio.Event()

    async def _stall(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.read(1024)
        await closed.wait()
        writer.close()

    server = await asyncio.start_server(_stall, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    yield f"http://127.0.0.1:{port}/products"
    closed.set()
    server.close()
    await server.wait_closed()


@pytest.fixture
def refused_url() -> str:
    """URL on a port with nothing listening."""
    return f"http://127.0.0.1:{_get_free_port()}/products"


# =============================================================================
# Sync fixtures for CLI tests (asyncio.run blocks the test thread)
# =============================================================================


@pytest.fixture
def sync_products_server() -> Iterator[ProductsServer]:
    """Mock products API running in a background thread."""
    server = ProductsServer()
    port = _get_free_port()
    server.base_url = f"http://127.0.0.1:{port}"
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_products_app(server))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield server

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def scenario_file(tmp_path: Path, sync_products_server: ProductsServer) -> Path:
    """Scenario file that checks the products endpoint for a 200."""
    code = f'''\
from __future__ import annotations

from checkrun import IterationContext, scenario, status_in


@scenario(name="File Scenario", vus=2, iterations=6)
async def get_products(ctx: IterationContext) -> None:
    resp = await ctx.client.get("{sync_products_server.url}", name="products")
    ctx.check(resp, {{"is ok": status_in({{200}})}})
'''
    path = tmp_path / "file_scenario.py"
    path.write_text(code)
    return path
