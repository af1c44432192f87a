"""
Cart Registry Service for Salad Cart
====================================

This module keeps one CartStore per storefront session with a two-tier
storage strategy:
1. **In-Memory Cache**: live CartStore objects for active sessions
2. **Durable Mirror**: the stripped cart projection in the database

Architecture Overview:
----------------------
- A cache miss builds a new CartStore wired to a DurableMirror keyed by the
  session id, restores it from the mirror and schedules hydration of every
  restored line.
- Every cart mutation writes the mirror itself (see cart/store.py), so
  evicting a cart from the cache loses nothing but its details, which are
  re-fetched on the next access.

Cache Eviction Strategy:
------------------------
1. **TTL-based**: Carts not accessed within CART_CACHE_TTL_SECONDS are
   evicted. Checked probabilistically (~1% of requests).

2. **LRU-based**: When the cache reaches CART_CACHE_MAX_SIZE, the oldest 10%
   of carts (by last access time) are evicted.

Thread Safety:
--------------
The cache map is protected by a threading.Lock. Each CartStore is only
mutated from the event loop serving its requests.

Usage:
------
    from salad_cart.services.carts import get_or_create_cart

    store = get_or_create_cart(session_id, gateway, SessionLocal)
    store.add(request)
"""

import logging
import random
import threading
import time
from typing import Any, Dict

from sqlalchemy.orm import sessionmaker

from ..config import CART_CACHE_MAX_SIZE, CART_CACHE_TTL_SECONDS
from ..catalog.gateway import CatalogGateway
from ..cart.mirror import DurableMirror
from ..cart.store import CartStore


logger = logging.getLogger(__name__)


# =============================================================================
# Cart Cache
# =============================================================================
# {session_id: {"store": CartStore, "last_access": timestamp}}

CART_CACHE: Dict[str, Dict[str, Any]] = {}
_cache_lock = threading.Lock()


# =============================================================================
# Cache Maintenance Functions
# =============================================================================

def _cleanup_expired_carts() -> int:
    """
    Remove carts that have not been accessed within CART_CACHE_TTL_SECONDS.

    Returns:
        int: Number of carts removed from the cache
    """
    now = time.time()

    with _cache_lock:
        expired = [
            sid for sid, entry in CART_CACHE.items()
            if now - entry.get("last_access", 0) > CART_CACHE_TTL_SECONDS
        ]
        for sid in expired:
            del CART_CACHE[sid]

    if expired:
        logger.debug("Cleaned up %d expired carts from cache", len(expired))

    return len(expired)


def _evict_oldest_carts_locked(count: int) -> None:
    """Evict the least recently used carts. Caller holds _cache_lock."""
    sorted_carts = sorted(
        CART_CACHE.items(),
        key=lambda x: x[1].get("last_access", 0)
    )
    to_remove = sorted_carts[:max(count, 1)]
    for sid, _ in to_remove:
        del CART_CACHE[sid]

    logger.debug("Evicted %d oldest carts from cache", len(to_remove))


# =============================================================================
# Public Cart Registry Functions
# =============================================================================

def get_or_create_cart(
    session_id: str,
    gateway: CatalogGateway,
    session_factory: sessionmaker,
) -> CartStore:
    """
    Get the live cart for a session, restoring it from the mirror if needed.

    Args:
        session_id: Storefront session identifier (also the mirror slot key)
        gateway: Catalog gateway for hydration and reorder lookups
        session_factory: SQLAlchemy sessionmaker for the mirror database

    Returns:
        The session's CartStore
    """
    if random.randint(1, 100) == 1:
        _cleanup_expired_carts()

    with _cache_lock:
        entry = CART_CACHE.get(session_id)
        if entry is not None:
            entry["last_access"] = time.time()
            return entry["store"]

    store = CartStore(gateway, mirror=DurableMirror(session_factory, slot_key=session_id))
    store.restore_from_mirror()

    with _cache_lock:
        # Another request may have restored the same cart meanwhile
        entry = CART_CACHE.get(session_id)
        if entry is not None:
            entry["last_access"] = time.time()
            return entry["store"]

        if len(CART_CACHE) >= CART_CACHE_MAX_SIZE:
            _evict_oldest_carts_locked(CART_CACHE_MAX_SIZE // 10)

        CART_CACHE[session_id] = {
            "store": store,
            "last_access": time.time(),
        }

    return store


def clear_cache() -> int:
    """
    Clear all carts from the in-memory cache. Mirrors are not touched.

    Returns:
        int: Number of carts that were in cache before clearing
    """
    with _cache_lock:
        count = len(CART_CACHE)
        CART_CACHE.clear()
        logger.info("Cleared %d carts from cache", count)
        return count


def get_cache_stats() -> Dict[str, Any]:
    """
    Get statistics about the cart cache.

    Returns:
        Dict with size, max_size, ttl_seconds, oldest_access, newest_access
    """
    with _cache_lock:
        if not CART_CACHE:
            return {
                "size": 0,
                "max_size": CART_CACHE_MAX_SIZE,
                "ttl_seconds": CART_CACHE_TTL_SECONDS,
                "oldest_access": None,
                "newest_access": None,
            }

        access_times = [entry["last_access"] for entry in CART_CACHE.values()]
        return {
            "size": len(CART_CACHE),
            "max_size": CART_CACHE_MAX_SIZE,
            "ttl_seconds": CART_CACHE_TTL_SECONDS,
            "oldest_access": min(access_times),
            "newest_access": max(access_times),
        }
