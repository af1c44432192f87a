"""
Routes Package for Salad Cart
=============================

API route definitions for the storefront's cart.

- cart.py: cart mutations, reorder, checkout and composite quotes

Each module defines APIRouter instances with a prefix and tags:

    cart_router = APIRouter(prefix="/cart", tags=["Cart"])

Routers are registered by app_factory.create_app().

Usage:
------
    from salad_cart.routes import cart_router, composites_router
    app.include_router(cart_router)
"""

from .cart import cart_router, composites_router

__all__ = [
    "cart_router",
    "composites_router",
]
