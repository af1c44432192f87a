"""
Configuration Module for Salad Cart
===================================

This module centralizes configuration settings, environment variables, and
constants used by the cart engine and its HTTP surface. Values are parsed
once at import time; tests override the module attributes directly.

Configuration Categories:
-------------------------
- **Catalog Gateway**: Where the remote document catalog lives and how long
  to wait for it. A seed file switches the app to the in-memory catalog.

- **Durable Mirror**: Database URL for the key-value slot table that keeps a
  stripped projection of each cart across sessions.

- **Cart Behaviour**: Notification lifetime and the identifier markers shared
  by the line resolver, checkout and the reorder reconstructor.

- **Cart Cache**: TTL and size bounds for the in-memory registry of carts.

- **CORS Settings**: Cross-Origin Resource Sharing for the storefront.

Environment Variables:
----------------------
- CATALOG_BASE_URL: Remote catalog service URL (default: "http://127.0.0.1:8090")
- CATALOG_TIMEOUT_SECONDS: Per-request timeout (default: 10)
- CATALOG_SEED_FILE: Optional JSON file for the in-memory catalog
- DATABASE_URL: Mirror database (default: "sqlite:///./salad_cart.db")
- CART_NOTIFICATION_SECONDS: "Item added" notification lifetime (default: 3)
- CART_CACHE_TTL_SECONDS: Cart cache TTL (default: 3600)
- CART_CACHE_MAX_SIZE: Max cached carts (default: 1000)
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")

Usage:
------
    from salad_cart.config import CATALOG_BASE_URL, CART_NOTIFICATION_SECONDS
"""

import os
from typing import List, Optional


# =============================================================================
# Catalog Gateway Configuration
# =============================================================================
# The catalog is a remote document service with ingredients, salads,
# user_salads and orders collections. It is assumed unreliable.

CATALOG_BASE_URL: str = os.getenv("CATALOG_BASE_URL", "http://127.0.0.1:8090").rstrip("/")

# Seconds before a single catalog request is abandoned
CATALOG_TIMEOUT_SECONDS: float = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "10"))

# When set, the app serves the catalog from this JSON file instead of the remote service
CATALOG_SEED_FILE: Optional[str] = os.getenv("CATALOG_SEED_FILE") or None


# =============================================================================
# Durable Mirror Configuration
# =============================================================================

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./salad_cart.db")


# =============================================================================
# Cart Behaviour
# =============================================================================

# How long the "item added" notification stays visible
CART_NOTIFICATION_SECONDS: float = float(os.getenv("CART_NOTIFICATION_SECONDS", "3"))

# Synthesized ids for customized composites look like "<base>_custom_<millis>"
CUSTOM_ID_MARKER: str = "_custom_"

# Legacy compact order keys: "salad_<id>" is a saved composite,
# "<ingredient>_from_<composite>" is an ingredient split out of a composite
LEGACY_SAVED_PREFIX: str = "salad_"
LEGACY_DERIVED_MARKER: str = "_from_"


# =============================================================================
# Cart Cache Configuration
# =============================================================================
# Carts are mirrored to the database and cached in memory with TTL/LRU eviction.

CART_CACHE_TTL_SECONDS: int = int(os.getenv("CART_CACHE_TTL_SECONDS", "3600"))  # 1 hour

CART_CACHE_MAX_SIZE: int = int(os.getenv("CART_CACHE_MAX_SIZE", "1000"))


# =============================================================================
# CORS Configuration
# =============================================================================
# Default "*" allows all origins (suitable for development only)

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]
