"""
Cart Routes for Salad Cart
==========================

This module contains the storefront-facing cart endpoints and the composite
quote endpoint used by the customize editor. The routes are thin: every
decision is made by the cart engine, the routes only look up the session's
CartStore, call one engine operation and shape the response.

Endpoints:
----------
- GET /cart/{session_id}: Current cart
- POST /cart/{session_id}/items: Add an item
- PUT /cart/{session_id}/items/{kind}/{item_id}: Set a line's quantity
- DELETE /cart/{session_id}/items/{kind}/{item_id}: Remove a line
- DELETE /cart/{session_id}: Clear the cart
- POST /cart/{session_id}/notification/dismiss: Hide the "item added" notice
- POST /cart/{session_id}/reorder: Rebuild the cart from a past order
- POST /cart/{session_id}/checkout: Place the order
- POST /composites/{composite_id}/quote: Price and nutrition preview

Session Handling:
-----------------
The session id is issued by the storefront. A cart that is not in memory is
restored from the durable mirror on first access (see services/carts.py).

Error Handling:
---------------
- 400: Malformed reorder snapshot, or checkout of an empty cart
- 404: Unknown composite on quote
- 422: Invalid add request (FastAPI validation)
- 502: Catalog service unreachable during quote or checkout

Usage:
------
    POST /cart/abc123/items
    {"id": "feta", "kind": "ingredient", "quantity": 2, "name": "Feta", "price": 1.5}

    POST /cart/abc123/reorder
    {"items": {"salad_xyz": 1, "feta": 2}}
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.orm import sessionmaker

from .. import db
from ..catalog.gateway import CatalogGateway
from ..cart.checkout import checkout
from ..cart.models import AddRequest, LineKind
from ..cart.pricing import baseline_map, nutrition_of, price_of
from ..cart.reorder import ReorderReconstructor
from ..cart.store import CartStore
from ..errors import CatalogNotFound, EmptyCart, HydrationFailure, MalformedSnapshot
from ..schemas.cart import (
    CartOut,
    CheckoutOut,
    CheckoutRequest,
    QuantityUpdate,
    QuoteOut,
    QuoteRequest,
    ReorderOut,
)
from ..services.carts import get_or_create_cart


logger = logging.getLogger(__name__)

# Router definitions
cart_router = APIRouter(prefix="/cart", tags=["Cart"])
composites_router = APIRouter(prefix="/composites", tags=["Composites"])


# =============================================================================
# Dependencies
# =============================================================================

def get_gateway(request: Request) -> CatalogGateway:
    """The catalog gateway configured on the application."""
    return request.app.state.gateway


def get_session_factory() -> sessionmaker:
    """Session factory for the durable mirror."""
    return db.SessionLocal


async def get_cart(
    session_id: str,
    gateway: CatalogGateway = Depends(get_gateway),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> CartStore:
    """The session's cart. Async so restored lines hydrate on the event loop."""
    return get_or_create_cart(session_id, gateway, session_factory)


def _cart_out(store: CartStore) -> CartOut:
    return CartOut.model_validate(store.snapshot())


# =============================================================================
# Cart Endpoints
# =============================================================================

@cart_router.get("/{session_id}", response_model=CartOut)
async def read_cart(store: CartStore = Depends(get_cart)) -> CartOut:
    """Get the current cart with totals and the active notification."""
    return _cart_out(store)


@cart_router.post("/{session_id}/items", response_model=CartOut)
async def add_item(
    session_id: str,
    item: AddRequest,
    store: CartStore = Depends(get_cart),
) -> CartOut:
    """
    Add an item to the cart.

    A plain item merges with an existing line of the same id and kind.
    A customized composite always becomes a new line.
    """
    line = store.add(item)
    logger.info("Session %s: added %d x %s (%s)", session_id, item.quantity, line.id, line.kind.value)
    return _cart_out(store)


@cart_router.put("/{session_id}/items/{kind}/{item_id}", response_model=CartOut)
async def update_item_quantity(
    kind: LineKind,
    item_id: str,
    payload: QuantityUpdate,
    store: CartStore = Depends(get_cart),
) -> CartOut:
    """Set a line's quantity. Zero or less removes the line."""
    store.set_quantity(item_id, kind, payload.quantity)
    return _cart_out(store)


@cart_router.delete("/{session_id}/items/{kind}/{item_id}", response_model=CartOut)
async def remove_item(
    kind: LineKind,
    item_id: str,
    store: CartStore = Depends(get_cart),
) -> CartOut:
    """Remove a line. Removing a line that is not in the cart is a no-op."""
    store.remove(item_id, kind)
    return _cart_out(store)


@cart_router.delete("/{session_id}", response_model=CartOut)
async def clear_cart(session_id: str, store: CartStore = Depends(get_cart)) -> CartOut:
    """Empty the cart and its durable mirror."""
    store.clear()
    logger.info("Session %s: cart cleared", session_id)
    return _cart_out(store)


@cart_router.post("/{session_id}/notification/dismiss", response_model=CartOut)
async def dismiss_notification(store: CartStore = Depends(get_cart)) -> CartOut:
    store.dismiss_notification()
    return _cart_out(store)


@cart_router.post("/{session_id}/reorder", response_model=ReorderOut)
async def reorder(
    session_id: str,
    payload: Any = Body(...),
    store: CartStore = Depends(get_cart),
) -> ReorderOut:
    """
    Replace the cart with the contents of a past order.

    The body is the order record (with "items_detail" and/or "items"), a bare
    list of detailed entries, or a bare legacy {item_id: quantity} map.
    Items that no longer exist in the catalog come back as warnings.
    """
    try:
        result = await ReorderReconstructor(store).reconstruct(payload)
    except MalformedSnapshot as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ReorderOut(
        cart=_cart_out(store),
        added=len(result.added_lines),
        warnings=[w.to_dict() for w in result.warnings],
    )


@cart_router.post("/{session_id}/checkout", response_model=CheckoutOut)
async def place_order(
    session_id: str,
    payload: Optional[CheckoutRequest] = None,
    store: CartStore = Depends(get_cart),
) -> CheckoutOut:
    """
    Submit the cart as an order. The cart is cleared only when the order
    was accepted.
    """
    extra = payload.order_fields() if payload else None
    try:
        order_id, order = await checkout(store, extra)
    except EmptyCart as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HydrationFailure as e:
        logger.error("Session %s: order submission failed: %s", session_id, e)
        raise HTTPException(status_code=502, detail="Could not place the order, please try again")

    return CheckoutOut(
        order_id=order_id,
        total=order["total"],
        items_detail=order["items_detail"],
        items=order["items"],
    )


# =============================================================================
# Composite Endpoints
# =============================================================================

@composites_router.post("/{composite_id}/quote", response_model=QuoteOut)
async def quote_composite(
    composite_id: str,
    payload: QuoteRequest,
    gateway: CatalogGateway = Depends(get_gateway),
) -> QuoteOut:
    """
    Price and nutrition of a composite with a customization applied.

    Ingredients that cannot be loaded are listed in missing_ingredients and
    contribute nothing to either total.
    """
    try:
        composite = await gateway.get_composite(composite_id)
    except CatalogNotFound:
        raise HTTPException(status_code=404, detail="Salad not found")
    except HydrationFailure as e:
        logger.warning("Quote for %s failed: %s", composite_id, e)
        raise HTTPException(status_code=502, detail="Catalog unavailable")

    ingredient_ids = set(baseline_map(composite)) | set(payload.customization or {})
    ingredients = await gateway.get_ingredients(sorted(ingredient_ids))

    quote = price_of(composite, payload.customization, ingredients)
    nutrition = nutrition_of(composite, payload.customization, ingredients)

    return QuoteOut(
        composite_id=composite.id,
        name=composite.name,
        base_price=composite.base_price,
        total=quote.total,
        delta_from_base=quote.delta_from_base,
        nutrition=nutrition.to_dict(),
        missing_ingredients=sorted(ingredient_ids - set(ingredients)),
    )
