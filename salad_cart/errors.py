"""
Error types for the cart engine.

Entity-level failures (CatalogNotFound, HydrationFailure) are expected and
recoverable: callers catch them where the entity is used and turn them into
a warning or a silent fallback. MalformedSnapshot is the only error allowed
to reject an enclosing call.
"""


class CartError(Exception):
    """Base class for all cart engine errors."""


class CatalogError(CartError):
    """A catalog lookup for a single entity did not produce a record."""

    def __init__(self, entity_id: str, kind: str, message: str):
        self.entity_id = entity_id
        self.kind = kind
        super().__init__(message)


class CatalogNotFound(CatalogError):
    """Raised when the catalog has no record for an id (deleted or never existed)."""

    def __init__(self, entity_id: str, kind: str):
        super().__init__(entity_id, kind, f"{kind} '{entity_id}' not found in catalog")


class HydrationFailure(CatalogError):
    """Raised on transport errors, timeouts or unreadable catalog responses."""

    def __init__(self, entity_id: str, kind: str, reason: str):
        self.reason = reason
        super().__init__(entity_id, kind, f"Failed to load {kind} '{entity_id}': {reason}")


class MalformedSnapshot(CartError):
    """Raised when a reorder snapshot is structurally invalid."""


class EmptyCart(CartError):
    """Raised when checking out a cart with no lines."""
