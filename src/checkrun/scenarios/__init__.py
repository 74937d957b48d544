"""Built-in scenarios shipped with checkrun."""

from __future__ import annotations

from checkrun.scenarios.products import make_products_iteration, products_scenario

__all__ = ["make_products_iteration", "products_scenario"]
