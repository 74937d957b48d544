"""Run session lifecycle: shared-iterations execution and signal handling."""

from __future__ import annotations

import asyncio
import signal
import sys
import time
from enum import Enum, auto
from typing import TYPE_CHECKING

from checkrun._internal.errors import EngineError
from checkrun._internal.logging import get_logger
from checkrun.dsl.http_client import HttpClient
from checkrun.dsl.scenario import IterationContext
from checkrun.engine._vu_utils import shutdown_all_vus
from checkrun.metrics.collector import MetricCollector
from checkrun.metrics.models import RunResult

if TYPE_CHECKING:
    from checkrun._internal.types import Headers
    from checkrun.dsl.scenario import ScenarioDefinition

logger = get_logger("engine.session")


class SessionState(Enum):
    """State machine for a run session."""

    CREATED = auto()
    RUNNING = auto()
    STOPPING = auto()
    COMPLETED = auto()
    FAILED = auto()


class RunSession:
    """Runs a scenario's iterations across its virtual users.

    Iterations are a shared pool: every VU loops, claiming the next
    iteration number until ``options.iterations`` have been claimed. Each
    VU owns its HTTP client and runs its iterations sequentially. Failures
    of the target never stop the run: a failed check is just a result, and
    an exception from the iteration body is counted as an iteration error.

    State machine: CREATED -> RUNNING -> STOPPING -> COMPLETED
                                      -> FAILED (on an engine error)

    Attributes:
        scenario: The scenario being executed.
    """

    def __init__(
        self,
        scenario: ScenarioDefinition,
        *,
        request_timeout: float = 60.0,
        headers: Headers | None = None,
        handle_signals: bool = True,
    ) -> None:
        """Initialize a run session.

        Args:
            scenario: The scenario definition to execute.
            request_timeout: Per-request timeout in seconds.
            headers: Default headers for every VU's client.
            handle_signals: Install SIGINT/SIGTERM handlers that stop the
                run gracefully.
        """
        self.scenario = scenario
        self._request_timeout = request_timeout
        self._headers = dict(headers or {})
        self._handle_signals = handle_signals

        self._state = SessionState.CREATED
        self._collector = MetricCollector()
        self._stop_event = asyncio.Event()
        self._vu_tasks: list[asyncio.Task[None]] = []
        self._next_iteration = 0

    @property
    def state(self) -> SessionState:
        """Return the current session state."""
        return self._state

    @property
    def active_vu_count(self) -> int:
        """Return the number of VUs still running."""
        return sum(1 for t in self._vu_tasks if not t.done())

    @property
    def iterations_claimed(self) -> int:
        """Return how many iteration numbers have been handed out."""
        return self._next_iteration

    async def run(self) -> RunResult:
        """Execute every iteration and return the aggregated result.

        Returns:
            RunResult with the run summary.

        Raises:
            EngineError: If a virtual user fails outside its iteration body.
        """
        options = self.scenario.options
        vus = min(options.vus, options.iterations)
        if vus < options.vus:
            logger.warning(
                "vus (%d) exceeds iterations (%d); starting %d virtual users",
                options.vus,
                options.iterations,
                vus,
            )

        self._state = SessionState.RUNNING
        logger.info(
            "Starting run: scenario=%s, vus=%d, iterations=%d, max_duration=%.1fs",
            self.scenario.name,
            vus,
            options.iterations,
            options.max_duration,
        )

        if self._handle_signals:
            self._install_signal_handlers()

        start_time = time.monotonic()

        try:
            self._vu_tasks = [
                asyncio.create_task(self._run_vu(vu_id), name=f"vu-{vu_id}")
                for vu_id in range(vus)
            ]
            done, pending = await asyncio.wait(
                self._vu_tasks, timeout=options.max_duration
            )

            if pending:
                logger.warning(
                    "max_duration of %.1fs reached with %d iterations unclaimed",
                    options.max_duration,
                    options.iterations - self._next_iteration,
                )
                self._state = SessionState.STOPPING
                await shutdown_all_vus(list(pending), self._stop_event)

            vu_errors = [
                exc
                for exc in (t.exception() for t in done if not t.cancelled())
                if exc is not None
            ]
            if vu_errors:
                raise vu_errors[0]

        except Exception as exc:
            self._state = SessionState.FAILED
            logger.exception("Run session failed")
            raise EngineError("Run session failed") from exc
        finally:
            if self._state == SessionState.FAILED:
                await shutdown_all_vus(
                    [t for t in self._vu_tasks if not t.done()], self._stop_event
                )
            if self._handle_signals:
                self._remove_signal_handlers()

        end_time = time.monotonic()
        duration = end_time - start_time
        summary = self._collector.summarize(elapsed_seconds=duration)
        finished = summary.iterations + summary.iteration_errors

        self._state = SessionState.COMPLETED
        logger.info(
            "Run completed: duration=%.1fs, iterations=%d, iteration_errors=%d, "
            "checks_passed=%d, checks_failed=%d",
            duration,
            summary.iterations,
            summary.iteration_errors,
            summary.checks_passed,
            summary.checks_failed,
        )

        return RunResult(
            scenario_name=self.scenario.name,
            vus=vus,
            iterations_planned=options.iterations,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=duration,
            interrupted=finished < options.iterations,
            summary=summary,
        )

    async def stop(self) -> None:
        """Ask every VU to stop after its current iteration."""
        if self._state == SessionState.RUNNING:
            logger.info("Graceful shutdown requested")
            self._state = SessionState.STOPPING
            self._stop_event.set()

    def _claim_iteration(self) -> int | None:
        """Hand out the next iteration number, or None when all are taken.

        VUs share one event loop, so the read-increment needs no lock.
        """
        if self._next_iteration >= self.scenario.options.iterations:
            return None
        iteration = self._next_iteration
        self._next_iteration += 1
        return iteration

    async def _run_vu(self, vu_id: int) -> None:
        """Run iterations for one virtual user until the pool is empty.

        Args:
            vu_id: Identifier of this virtual user.
        """
        async with HttpClient(
            headers=self._headers,
            metric_callback=self._collector.record,
            vu_id=vu_id,
            timeout=self._request_timeout,
        ) as client:
            while not self._stop_event.is_set():
                iteration = self._claim_iteration()
                if iteration is None:
                    break

                ctx = IterationContext(
                    client=client,
                    vu_id=vu_id,
                    iteration=iteration,
                    check_callback=self._collector.record_check,
                )
                try:
                    await self.scenario.func(ctx)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    self._collector.record_iteration(exc)
                    logger.debug(
                        "Iteration %d failed for vu %d",
                        iteration,
                        vu_id,
                        exc_info=True,
                    )
                else:
                    self._collector.record_iteration()

    def _install_signal_handlers(self) -> None:
        """Install SIGINT and SIGTERM handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def _signal_handler() -> None:
            logger.info("Signal received, initiating graceful shutdown")
            self._state = SessionState.STOPPING
            self._stop_event.set()

        if sys.platform != "win32":
            loop.add_signal_handler(signal.SIGINT, _signal_handler)
            loop.add_signal_handler(signal.SIGTERM, _signal_handler)
        else:
            signal.signal(signal.SIGINT, lambda _s, _f: _signal_handler())
            signal.signal(signal.SIGTERM, lambda _s, _f: _signal_handler())

    def _remove_signal_handlers(self) -> None:
        """Remove the custom signal handlers, restoring defaults."""
        if sys.platform != "win32":
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
        else:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            signal.signal(signal.SIGTERM, signal.SIG_DFL)
