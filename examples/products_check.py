"""Products endpoint check, written as a scenario file.

The same run as the built-in scenario, spelled out so it can be copied and
edited. The URL, token and accepted statuses come from ``CHECKRUN_*``
environment variables, falling back to the bundled defaults. Run with:

    checkrun run examples/products_check.py
"""

from __future__ import annotations

from checkrun import STATUS_CHECK, IterationContext, scenario, status_in
from checkrun._internal.config import load_config

config = load_config()


@scenario(name="Products Check", vus=1, iterations=50)
async def products(ctx: IterationContext) -> None:
    """GET /products and accept 200, 500 or 503."""
    resp = await ctx.client.get(
        config.url,
        headers={"Authorization": f"Bearer {config.token}"},
        name="products",
    )
    ctx.check(resp, {STATUS_CHECK: status_in(config.accepted_statuses)})
