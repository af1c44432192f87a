"""
Checkout: turn the cart into an order payload and submit it.

The payload carries both formats the reorder reconstructor reads back:
a detailed "items_detail" list (with compositions where the cart knows
them) and the compact legacy "items" map, keyed so the legacy dispatch in
reorder.py lands on the right kind.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from ..config import LEGACY_SAVED_PREFIX
from ..catalog.schemas import CompositeRecord
from ..errors import EmptyCart
from .models import CartLine, LineKind
from .store import CartStore

logger = logging.getLogger(__name__)


def _detail_entry(line: CartLine) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "id": line.id,
        "kind": line.kind.value,
        "name": line.name,
        "price": line.unit_price,
        "quantity": line.quantity,
    }
    if line.is_customized:
        entry["base_id"] = line.base_id
        if line.customization:
            entry["customization"] = dict(line.customization)
            entry["composition"] = dict(line.customization)
    elif isinstance(line.details, CompositeRecord) and line.details.composition:
        entry["composition"] = dict(line.details.composition)
    return entry


def _legacy_key(line: CartLine) -> str:
    if line.kind == LineKind.SAVED_COMPOSITE:
        return f"{LEGACY_SAVED_PREFIX}{line.id}"
    return line.id


def build_order_payload(store: CartStore, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the order payload for the current cart.

    Args:
        store: Cart to check out
        extra: Additional order fields (delivery option, user id, ...)

    Returns:
        Dict with "items_detail", "items", "total" and the extra fields
    """
    lines = store.lines
    items: Dict[str, int] = {}
    for line in lines:
        key = _legacy_key(line)
        items[key] = items.get(key, 0) + line.quantity

    payload: Dict[str, Any] = dict(extra or {})
    payload.update({
        "items_detail": [_detail_entry(line) for line in lines],
        "items": items,
        "total": store.subtotal,
        "status": payload.get("status", "pending"),
    })
    return payload


async def checkout(
    store: CartStore,
    extra: Optional[Dict[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """
    Submit the cart as an order through the store's gateway and take the
    ordered lines out of the cart.

    The cart may change while the order is in flight. Only what went into
    the payload is removed afterwards; anything added meanwhile stays.

    Returns:
        (order_id, payload)

    Raises:
        EmptyCart: if there is nothing to check out
        HydrationFailure: if the order could not be submitted; the cart is left intact
    """
    if store.is_empty:
        raise EmptyCart("Your cart is empty")

    ordered = [line.model_copy() for line in store.lines]
    payload = build_order_payload(store, extra)
    order_id = await store.gateway.create_order(payload)
    logger.info(
        "Order %s placed with %d items, total %.2f",
        order_id, sum(line.quantity for line in ordered), payload["total"],
    )
    store.remove_ordered(ordered)
    return order_id, payload
