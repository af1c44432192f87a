"""
Cart Package for Salad Cart
===========================

The cart composition and reconciliation engine:

- **models**: CartLine, AddRequest, snapshot and warning types
- **identity**: merge-or-insert decisions for add requests
- **pricing**: price and nutrition of customized composites
- **store**: the cart itself, with hydration and mirroring side effects
- **reorder**: rebuilding a cart from a historical order
- **mirror**: the durable, stripped projection of a cart
- **checkout**: order payloads and submission

Usage:
------
    from salad_cart.cart import CartStore, AddRequest, LineKind

    store = CartStore(gateway)
    store.add(AddRequest(id="abc", kind=LineKind.INGREDIENT, name="Feta", unit_price=1.5))
"""

from .checkout import build_order_payload, checkout
from .identity import InsertNew, LineIdentityResolver, Merge, split_custom_id
from .mirror import DurableMirror
from .models import (
    AddRequest,
    CartLine,
    CartNotification,
    DetailedEntry,
    DetailedSnapshot,
    LegacySnapshot,
    LineKind,
    ReorderResult,
    RestoreWarning,
)
from .pricing import CompositeBuilder, NutritionTotals, PriceQuote, nutrition_of, price_of
from .reorder import ReorderReconstructor, parse_snapshot
from .store import CartStore

__all__ = [
    "build_order_payload",
    "checkout",
    "InsertNew",
    "LineIdentityResolver",
    "Merge",
    "split_custom_id",
    "DurableMirror",
    "AddRequest",
    "CartLine",
    "CartNotification",
    "DetailedEntry",
    "DetailedSnapshot",
    "LegacySnapshot",
    "LineKind",
    "ReorderResult",
    "RestoreWarning",
    "CompositeBuilder",
    "NutritionTotals",
    "PriceQuote",
    "nutrition_of",
    "price_of",
    "ReorderReconstructor",
    "parse_snapshot",
    "CartStore",
]
