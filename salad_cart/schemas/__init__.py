"""
Pydantic Schemas Package for Salad Cart
=======================================

Request and response models for the HTTP surface. Engine types (AddRequest,
CartLine, catalog records) live with the engine and are reused as-is.

Usage:
------
    from salad_cart.schemas import CartOut, QuantityUpdate
"""

from .cart import (
    CartLineOut,
    CartOut,
    CheckoutOut,
    CheckoutRequest,
    NotificationOut,
    NutritionOut,
    QuantityUpdate,
    QuoteOut,
    QuoteRequest,
    ReorderOut,
    RestoreWarningOut,
)

__all__ = [
    "CartLineOut",
    "CartOut",
    "CheckoutOut",
    "CheckoutRequest",
    "NotificationOut",
    "NutritionOut",
    "QuantityUpdate",
    "QuoteOut",
    "QuoteRequest",
    "ReorderOut",
    "RestoreWarningOut",
]
