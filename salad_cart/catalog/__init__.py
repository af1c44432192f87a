"""
Catalog access for the cart engine: record schemas and gateway implementations.
"""

from .gateway import (
    KIND_COMPOSITE,
    KIND_INGREDIENT,
    KIND_SAVED_COMPOSITE,
    CatalogGateway,
    PocketBaseCatalogGateway,
    StaticCatalogGateway,
)
from .schemas import CompositeRecord, IngredientRecord

__all__ = [
    "KIND_COMPOSITE",
    "KIND_INGREDIENT",
    "KIND_SAVED_COMPOSITE",
    "CatalogGateway",
    "PocketBaseCatalogGateway",
    "StaticCatalogGateway",
    "CompositeRecord",
    "IngredientRecord",
]
