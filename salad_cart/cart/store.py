"""
Cart Store
==========

The single owner of a cart's lines. All mutations (add, remove,
set_quantity, clear) apply to the in-memory state immediately and in call
order. Two kinds of side effects follow a mutation without blocking it:

1. **Hydration**: a newly inserted line starts with details=None and a task
   fetches its full catalog record. When the record arrives, it is attached
   only if a line with the same (id, kind) still exists and carries the same
   insertion token as when the fetch was issued. Anything else means the line
   was removed (or removed and re-added) in the meantime, and the result is
   dropped. This identity check is the only cancellation mechanism.

2. **Mirror sync**: the stripped projection of the cart is written to the
   durable mirror after every mutation.

Hydration failures are logged and otherwise ignored; the line keeps working
with the name and price cached when it was added.

Usage:
------
    store = CartStore(gateway, mirror=DurableMirror(SessionLocal, "session-123"))
    store.restore_from_mirror()
    store.add(AddRequest(id="abc", kind=LineKind.INGREDIENT, quantity=2,
                         name="Feta", unit_price=1.5))
    store.set_quantity("abc", LineKind.INGREDIENT, 0)   # same as remove
"""

import asyncio
import itertools
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set

from ..config import CART_NOTIFICATION_SECONDS
from ..catalog.gateway import CatalogGateway
from ..errors import CatalogNotFound, HydrationFailure
from .identity import LineIdentityResolver, Merge
from .models import AddRequest, CartLine, CartNotification, LineKind

logger = logging.getLogger(__name__)


class CartStore:
    """
    In-memory cart with hydration and durable mirroring.

    Args:
        gateway: Catalog gateway used to hydrate line details
        mirror: Optional DurableMirror written after every mutation
        resolver: Line identity resolver (one per store)
        clock: Monotonic clock for notification expiry
        notification_seconds: Lifetime of the "item added" notification
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        mirror=None,
        resolver: Optional[LineIdentityResolver] = None,
        clock: Callable[[], float] = time.monotonic,
        notification_seconds: Optional[float] = None,
    ):
        self._gateway = gateway
        self._mirror = mirror
        self._resolver = resolver or LineIdentityResolver()
        self._clock = clock
        self._notification_seconds = (
            CART_NOTIFICATION_SECONDS if notification_seconds is None else notification_seconds
        )
        self._lines: List[CartLine] = []
        self._serial = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()
        self._notification: Optional[CartNotification] = None

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def gateway(self) -> CatalogGateway:
        return self._gateway

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def get(self, line_id: str, kind: LineKind) -> Optional[CartLine]:
        for line in self._lines:
            if line.id == line_id and line.kind == kind:
                return line
        return None

    @property
    def line_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self._lines), 2)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def notification(self) -> Optional[CartNotification]:
        current = self._notification
        if current is not None and self._clock() >= current.expires_at:
            self._notification = None
            return None
        return current

    def dismiss_notification(self) -> None:
        self._notification = None

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the cart for the storefront."""
        notification = self.notification
        return {
            "lines": [
                {
                    **line.display_fields(),
                    "customization": line.customization,
                    "base_id": line.base_id,
                    "hydrated": line.details is not None,
                }
                for line in self._lines
            ],
            "line_count": self.line_count,
            "subtotal": self.subtotal,
            "notification": notification.to_dict() if notification else None,
        }

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, request: AddRequest) -> CartLine:
        """
        Add an item, merging with an existing plain line when possible.

        Returns:
            A copy of the line the request landed on
        """
        resolution = self._resolver.resolve(request, self._lines)

        if isinstance(resolution, Merge):
            line = self.get(resolution.existing_id, request.kind)
            line.quantity += request.quantity
            logger.debug("Merged %d x %s into existing line", request.quantity, line.id)
        else:
            customization = None
            if resolution.base_id is not None:
                customization = dict(request.customization or {})
            line = CartLine(
                id=resolution.line_id,
                kind=request.kind,
                quantity=request.quantity,
                name=request.name,
                unit_price=request.unit_price,
                customization=customization,
                base_id=resolution.base_id,
                token=next(self._serial),
            )
            self._lines.append(line)
            logger.debug("Inserted line %s (%s)", line.id, line.kind.value)
            self._schedule_hydration(line)

        self._notification = CartNotification(
            name=line.name,
            unit_price=line.unit_price,
            quantity=request.quantity,
            expires_at=self._clock() + self._notification_seconds,
        )
        self._sync_mirror()
        return line.model_copy()

    def remove(self, line_id: str, kind: LineKind) -> None:
        """Remove the line matching (id, kind). No-op when absent."""
        before = len(self._lines)
        self._lines = [
            line for line in self._lines
            if not (line.id == line_id and line.kind == kind)
        ]
        if len(self._lines) != before:
            self._sync_mirror()

    def set_quantity(self, line_id: str, kind: LineKind, quantity: int) -> None:
        """Replace a line's quantity. Zero or less removes the line."""
        if quantity <= 0:
            self.remove(line_id, kind)
            return
        line = self.get(line_id, kind)
        if line is None:
            return
        line.quantity = quantity
        self._sync_mirror()

    def clear(self) -> None:
        """Empty the cart and the durable mirror."""
        self._lines = []
        self._notification = None
        if self._mirror is not None:
            self._mirror.clear()

    def remove_ordered(self, ordered: List[CartLine]) -> None:
        """
        Take lines that went into a placed order out of the cart.

        Lines are matched by (id, kind, token), so a line added while the
        order was being submitted stays. Quantity merged into an ordered line
        in the meantime stays as well.

        Args:
            ordered: Copies of the lines as they were when the order was built
        """
        remaining: List[CartLine] = []
        for line in self._lines:
            match = next(
                (o for o in ordered if (o.id, o.kind, o.token) == (line.id, line.kind, line.token)),
                None,
            )
            if match is None:
                remaining.append(line)
            elif line.quantity > match.quantity:
                line.quantity -= match.quantity
                remaining.append(line)

        if not remaining:
            self.clear()
            return
        self._lines = remaining
        self._sync_mirror()

    def restore_from_mirror(self) -> int:
        """
        Replace the lines with the mirror's projection and start hydration.

        Returns:
            Number of lines restored
        """
        if self._mirror is None:
            return 0
        restored = self._mirror.load()
        for line in restored:
            line.token = next(self._serial)
        self._lines = restored
        for line in restored:
            self._schedule_hydration(line)
        logger.info("Restored %d cart lines from mirror", len(restored))
        return len(restored)

    # =========================================================================
    # Side effects
    # =========================================================================

    def _sync_mirror(self) -> None:
        if self._mirror is not None:
            self._mirror.save(self._lines)

    def _schedule_hydration(self, line: CartLine) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; %s waits for hydrate_pending()", line.id)
            return
        task = loop.create_task(self._hydrate(line.id, line.kind, line.token, line.base_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _hydrate(
        self,
        line_id: str,
        kind: LineKind,
        token: int,
        base_id: Optional[str],
    ) -> bool:
        # Customized lines are described by the composite they were built from
        lookup_id = base_id or line_id
        try:
            record = await self._gateway.get(kind.value, lookup_id)
        except (CatalogNotFound, HydrationFailure) as e:
            logger.warning("Could not load details for %s: %s", line_id, e)
            return False
        return self._apply_details(line_id, kind, token, record)

    def _apply_details(self, line_id: str, kind: LineKind, token: int, record) -> bool:
        line = self.get(line_id, kind)
        if line is None or line.token != token:
            logger.debug("Discarding stale details for %s (%s)", line_id, kind.value)
            return False
        line.details = record
        return True

    async def hydrate_pending(self) -> None:
        """
        Wait for in-flight hydration, then hydrate lines still missing details.
        """
        if self._pending:
            await asyncio.wait(list(self._pending))
        missing = [line for line in self._lines if line.details is None]
        if missing:
            await asyncio.gather(*(
                self._hydrate(line.id, line.kind, line.token, line.base_id)
                for line in missing
            ))
