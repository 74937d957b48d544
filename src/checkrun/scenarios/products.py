"""Authenticated GET against the products endpoint with a status check."""

from __future__ import annotations

from typing import TYPE_CHECKING

from checkrun._internal.config import RunOptions
from checkrun.dsl.checks import STATUS_CHECK, status_in
from checkrun.dsl.scenario import IterationFunc, ScenarioDefinition

if TYPE_CHECKING:
    from checkrun._internal.config import RequestConfig
    from checkrun.dsl.scenario import IterationContext


def make_products_iteration(config: RequestConfig) -> IterationFunc:
    """Build the iteration body for ``config``.

    Each call sends exactly one GET to ``config.url`` carrying the bearer
    token, then reports the ``"status is valid"`` check. Transport errors
    are left to propagate so the harness records an iteration error.

    Args:
        config: Static request configuration.

    Returns:
        An async iteration body.
    """
    auth_headers = {"Authorization": f"Bearer {config.token}"}
    checks = {STATUS_CHECK: status_in(config.accepted_statuses)}

    async def products_iteration(ctx: IterationContext) -> None:
        resp = await ctx.client.get(config.url, headers=auth_headers, name="products")
        ctx.check(resp, checks)

    return products_iteration


def products_scenario(
    config: RequestConfig,
    options: RunOptions | None = None,
) -> ScenarioDefinition:
    """Build the built-in products scenario without registering it.

    Args:
        config: Static request configuration.
        options: Executor options. Defaults to 1 VU and 50 iterations.

    Returns:
        A ready-to-run scenario definition.
    """
    return ScenarioDefinition(
        name="products",
        func=make_products_iteration(config),
        options=options or RunOptions(vus=1, iterations=50),
    )
