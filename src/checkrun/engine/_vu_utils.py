"""Virtual user shutdown helper."""

from __future__ import annotations

import asyncio

from checkrun._internal.logging import get_logger

logger = get_logger("engine.vu_utils")


async def shutdown_all_vus(
    vu_tasks: list[asyncio.Task[None]],
    stop_event: asyncio.Event,
    *,
    grace_period: float = 5.0,
) -> int:
    """Stop every virtual user, cancelling those that overrun the grace period.

    Sets the stop event so VUs exit after their current iteration, waits up
    to ``grace_period`` seconds, then cancels what is left and waits briefly
    for the cancellations to land.

    Args:
        vu_tasks: Virtual user tasks to shut down.
        stop_event: Event that tells running VUs to stop.
        grace_period: Seconds to wait before cancelling.

    Returns:
        Number of tasks that had to be cancelled.
    """
    stop_event.set()

    cancelled = 0
    if vu_tasks:
        _done, pending = await asyncio.wait(vu_tasks, timeout=grace_period)

        for task in pending:
            task.cancel()
        cancelled = len(pending)

        if pending:
            await asyncio.wait(pending, timeout=2.0)

    logger.debug("All virtual users shut down (%d cancelled)", cancelled)
    return cancelled
