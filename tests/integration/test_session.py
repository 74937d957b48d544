"""Integration tests for the shared-iterations run session."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from checkrun._internal.config import RequestConfig, RunOptions
from checkrun._internal.errors import EngineError
from checkrun.dsl.checks import STATUS_CHECK
from checkrun.dsl.scenario import IterationContext, ScenarioDefinition
from checkrun.engine.session import RunSession, SessionState
from checkrun.scenarios.products import products_scenario

if TYPE_CHECKING:
    from tests.conftest import ProductsServer


def _products(url: str, *, vus: int = 1, iterations: int = 50) -> ScenarioDefinition:
    return products_scenario(
        RequestConfig(url=url, token="static-jwt"),
        RunOptions(vus=vus, iterations=iterations),
    )


# ============================================================================
# Products scenario against the mock API
# ============================================================================


class TestProductsRun:
    """The built-in scenario: 1 VU, 50 iterations."""

    async def test_fifty_authenticated_gets(self, products_server: ProductsServer):
        session = RunSession(_products(products_server.url), handle_signals=False)

        result = await session.run()

        assert len(products_server.requests) == 50
        assert all(h["Authorization"] == "Bearer static-jwt" for h in products_server.requests)
        assert result.summary is not None
        assert result.summary.total_requests == 50
        assert session.state == SessionState.COMPLETED

    @pytest.mark.parametrize(("status", "passes"), [(200, 50), (500, 50), (503, 50), (404, 0)])
    async def test_check_counts_by_status(
        self, products_server: ProductsServer, status: int, passes: int
    ):
        products_server.status = status
        result = await RunSession(_products(products_server.url), handle_signals=False).run()

        summary = result.summary
        assert summary is not None
        tally = summary.checks[STATUS_CHECK]
        assert tally.passes == passes
        assert tally.fails == 50 - passes
        assert summary.iterations == 50
        assert summary.iteration_errors == 0
        assert summary.status_counts == {status: 50}
        assert result.interrupted is False

    async def test_dropped_connection_is_an_iteration_error(self, dropping_server_url: str):
        session = RunSession(_products(dropping_server_url), handle_signals=False)

        result = await session.run()

        summary = result.summary
        assert summary is not None
        assert summary.iteration_errors == 50
        assert summary.iterations == 0
        assert summary.checks == {}
        assert summary.request_errors == 50
        assert session.state == SessionState.COMPLETED

    async def test_refused_connection_is_an_iteration_error(self, refused_url: str):
        result = await RunSession(
            _products(refused_url, iterations=5), request_timeout=1.0, handle_signals=False
        ).run()

        assert result.summary is not None
        assert result.summary.iteration_errors == 5
        assert result.summary.checks_failed == 0

    async def test_iterations_shared_across_vus(self, products_server: ProductsServer):
        result = await RunSession(
            _products(products_server.url, vus=4, iterations=50), handle_signals=False
        ).run()

        assert result.vus == 4
        assert len(products_server.requests) == 50
        assert result.summary is not None
        assert result.summary.checks_passed == 50


# ============================================================================
# Executor behaviour with hand-built scenarios
# ============================================================================


class TestRunSessionExecutor:
    """Tests for scheduling, limits, and failure handling."""

    async def test_each_iteration_number_claimed_once(self):
        seen: list[tuple[int, int]] = []

        async def _body(ctx: IterationContext) -> None:
            seen.append((ctx.vu_id, ctx.iteration))
            await asyncio.sleep(0)

        definition = ScenarioDefinition(
            name="Counter", func=_body, options=RunOptions(vus=3, iterations=20)
        )
        session = RunSession(definition, handle_signals=False)
        result = await session.run()

        assert sorted(i for _, i in seen) == list(range(20))
        assert {vu for vu, _ in seen} <= {0, 1, 2}
        assert session.iterations_claimed == 20
        assert result.summary is not None
        assert result.summary.iterations == 20

    async def test_vus_capped_at_iterations(self):
        async def _body(ctx: IterationContext) -> None:
            pass

        definition = ScenarioDefinition(
            name="Capped", func=_body, options=RunOptions(vus=10, iterations=3)
        )
        result = await RunSession(definition, handle_signals=False).run()

        assert result.vus == 3

    async def test_body_exception_does_not_stop_run(self):
        async def _body(ctx: IterationContext) -> None:
            if ctx.iteration % 2:
                raise ValueError("odd")
            ctx.check(None, {"even": lambda _v: True})

        definition = ScenarioDefinition(
            name="Flaky", func=_body, options=RunOptions(vus=1, iterations=10)
        )
        result = await RunSession(definition, handle_signals=False).run()

        summary = result.summary
        assert summary is not None
        assert summary.iterations == 5
        assert summary.iteration_errors == 5
        assert summary.errors_by_type == {"ValueError": 5}
        assert summary.checks["even"].passes == 5

    async def test_max_duration_interrupts(self):
        async def _body(ctx: IterationContext) -> None:
            await asyncio.sleep(0.05)

        definition = ScenarioDefinition(
            name="Slow",
            func=_body,
            options=RunOptions(vus=1, iterations=1000, max_duration=0.3),
        )
        session = RunSession(definition, handle_signals=False)
        result = await session.run()

        assert result.interrupted is True
        assert result.summary is not None
        assert 0 < result.summary.iterations < 1000
        assert session.state == SessionState.COMPLETED

    async def test_stop_ends_run_early(self):
        session: RunSession

        async def _body(ctx: IterationContext) -> None:
            if ctx.iteration == 4:
                await session.stop()

        definition = ScenarioDefinition(
            name="Stoppable", func=_body, options=RunOptions(vus=1, iterations=100)
        )
        session = RunSession(definition, handle_signals=False)
        result = await session.run()

        assert result.summary is not None
        assert result.summary.iterations == 5
        assert result.interrupted is True

    async def test_vu_failure_outside_body_raises_engine_error(
        self, monkeypatch: pytest.MonkeyPatch
    ):
        async def _body(ctx: IterationContext) -> None:
            pass

        definition = ScenarioDefinition(
            name="Broken", func=_body, options=RunOptions(vus=1, iterations=1)
        )
        session = RunSession(definition, handle_signals=False)

        def _explode() -> int | None:
            raise RuntimeError("counter broke")

        monkeypatch.setattr(session, "_claim_iteration", _explode)

        with pytest.raises(EngineError, match="Run session failed"):
            await session.run()
        assert session.state == SessionState.FAILED

    async def test_signal_handlers_installed_and_removed(self):
        async def _body(ctx: IterationContext) -> None:
            pass

        definition = ScenarioDefinition(
            name="Signals", func=_body, options=RunOptions(vus=1, iterations=2)
        )
        result = await RunSession(definition).run()

        assert result.summary is not None
        assert result.summary.iterations == 2
