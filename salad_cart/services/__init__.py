"""
Services Package for Salad Cart
===============================

Stateful infrastructure around the cart engine.

Available Services:
-------------------
- **carts**: Per-session CartStore cache backed by the durable mirror

Usage:
------
    from salad_cart.services.carts import get_or_create_cart, clear_cache
"""

from . import carts

__all__ = ["carts"]
