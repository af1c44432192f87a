"""
Reorder Reconstruction
======================

Rebuilds a cart from a historical order against the current catalog. Names
and prices always come from the catalog as it is now, never from the
snapshot, since prices may have changed since the order was placed.

Order Formats:
--------------
Orders carry one or both of:

- **items_detail**: one entry per cart line,
  {id, kind, quantity, composition?, customization?, base_id?}
- **items**: the compact legacy map {item_key: quantity}, where the key
  encodes what the item was:
    "salad_<id>"                    saved composite
    "<ingredient>_from_<composite>" ingredient split out of a composite
    "<base>_custom_<millis>"        customized composite
    anything else                   plain ingredient

parse_snapshot() turns a payload into DetailedSnapshot or LegacySnapshot.
Legacy keys are then normalized into the same entry type as detailed
entries so that both formats run through one restore algorithm.

Restore Algorithm (per entry):
------------------------------
1. Resolve the entry by id for its kind. Success: add it to the cart at the
   requested quantity through CartStore.add.
2. Failure (not found or unreachable): if the entry recorded its ingredient
   composition, add each ingredient at (ingredient qty x requested qty).
   A constituent that fails produces one warning and the rest carry on.
   With no composition the entry itself becomes a warning.
3. Customized composites re-resolve their base composite and are re-priced
   against current ingredient prices.

Entries run concurrently and independently; one entry failing never stops
another. Only a structurally malformed payload raises MalformedSnapshot.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..config import LEGACY_DERIVED_MARKER, LEGACY_SAVED_PREFIX
from ..errors import CatalogError, CatalogNotFound, MalformedSnapshot
from .identity import split_custom_id
from .models import (
    AddRequest,
    CartLine,
    DetailedEntry,
    DetailedSnapshot,
    LegacySnapshot,
    LineKind,
    OrderSnapshot,
    ReorderResult,
    RestoreWarning,
)
from .pricing import baseline_map, price_of
from .store import CartStore

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot parsing
# =============================================================================

def _parse_detailed(entries: Any) -> DetailedSnapshot:
    if not isinstance(entries, list):
        raise MalformedSnapshot("items_detail must be a list")
    parsed = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise MalformedSnapshot(f"items_detail[{index}] is not an object")
        try:
            parsed.append(DetailedEntry.model_validate(entry))
        except ValidationError as e:
            raise MalformedSnapshot(f"items_detail[{index}] is invalid: {e}") from e
    return DetailedSnapshot(entries=tuple(parsed))


def _parse_legacy(items: Any) -> LegacySnapshot:
    if not isinstance(items, dict):
        raise MalformedSnapshot("items must be a mapping of item id to quantity")
    parsed = []
    for key, quantity in items.items():
        if not isinstance(key, str) or not key:
            raise MalformedSnapshot(f"Invalid item key: {key!r}")
        if isinstance(quantity, bool):
            raise MalformedSnapshot(f"Invalid quantity for {key}: {quantity!r}")
        try:
            count = int(quantity)
        except (TypeError, ValueError):
            raise MalformedSnapshot(f"Invalid quantity for {key}: {quantity!r}") from None
        if count < 1 or count != float(quantity):
            raise MalformedSnapshot(f"Invalid quantity for {key}: {quantity!r}")
        parsed.append((key, count))
    return LegacySnapshot(items=tuple(parsed))


def parse_snapshot(payload: Any) -> OrderSnapshot:
    """
    Turn an order payload into a snapshot.

    Accepts an order dict with "items_detail" and/or "items", a bare list of
    detailed entries, or a bare legacy map. Detailed entries win when both
    formats are present.

    Raises:
        MalformedSnapshot: if the payload has no usable structure or no items
    """
    if isinstance(payload, (DetailedSnapshot, LegacySnapshot)):
        return payload
    if isinstance(payload, list):
        return _parse_detailed(payload)
    if not isinstance(payload, dict):
        raise MalformedSnapshot("Order snapshot must be an object or a list")

    if "items_detail" in payload or "items" in payload:
        detail = payload.get("items_detail")
        legacy = payload.get("items")
        if detail:
            return _parse_detailed(detail)
        if legacy:
            return _parse_legacy(legacy)
        raise MalformedSnapshot("This order has no items to reorder")

    if not payload:
        raise MalformedSnapshot("This order has no items to reorder")
    return _parse_legacy(payload)


# =============================================================================
# Reconstruction
# =============================================================================

@dataclass(frozen=True)
class _RestoreTask:
    entry: DetailedEntry
    # Legacy keys don't record a kind; try these when the first lookup misses
    alternate_kinds: Tuple[LineKind, ...] = ()


def _legacy_task(key: str, quantity: int) -> _RestoreTask:
    """Normalize one legacy {key: quantity} item into a restore task."""
    if key.startswith(LEGACY_SAVED_PREFIX):
        saved_id = key[len(LEGACY_SAVED_PREFIX):]
        return _RestoreTask(DetailedEntry(id=saved_id, kind=LineKind.SAVED_COMPOSITE, quantity=quantity))

    if LEGACY_DERIVED_MARKER in key:
        ingredient_id = key.split(LEGACY_DERIVED_MARKER)[0]
        return _RestoreTask(DetailedEntry(id=ingredient_id, kind=LineKind.INGREDIENT, quantity=quantity))

    base_id, is_custom = split_custom_id(key)
    if is_custom:
        return _RestoreTask(DetailedEntry(id=base_id, kind=LineKind.COMPOSITE, quantity=quantity))

    return _RestoreTask(
        DetailedEntry(id=key, kind=LineKind.INGREDIENT, quantity=quantity),
        alternate_kinds=(LineKind.COMPOSITE,),
    )


class ReorderReconstructor:
    """
    Restores historical orders into a CartStore.

    Args:
        store: The cart to fill. Its gateway is used for all lookups.
    """

    def __init__(self, store: CartStore):
        self._store = store
        self._gateway = store.gateway

    async def reconstruct(self, snapshot: Any, clear_first: bool = True) -> ReorderResult:
        """
        Replace the cart with the contents of a historical order.

        Args:
            snapshot: DetailedSnapshot, LegacySnapshot, or a raw order payload
            clear_first: Empty the cart before restoring (reorder replaces the cart)

        Returns:
            ReorderResult with the lines added and one warning per entity
            that could not be restored

        Raises:
            MalformedSnapshot: if the snapshot is structurally invalid
        """
        snapshot = parse_snapshot(snapshot)
        if isinstance(snapshot, DetailedSnapshot):
            tasks = [_RestoreTask(entry) for entry in snapshot.entries]
        else:
            tasks = [_legacy_task(key, quantity) for key, quantity in snapshot.items]

        if clear_first:
            self._store.clear()

        outcomes = await asyncio.gather(*(self._restore(task) for task in tasks))

        result = ReorderResult()
        for outcome in outcomes:
            result.extend(outcome)

        logger.info(
            "Reorder restored %d lines with %d warnings",
            len(result.added_lines), len(result.warnings),
        )
        return result

    async def _resolve(self, kind: LineKind, entity_id: str, alternates: Tuple[LineKind, ...]):
        try:
            return kind, await self._gateway.get(kind.value, entity_id)
        except CatalogNotFound:
            for alternate in alternates:
                try:
                    return alternate, await self._gateway.get(alternate.value, entity_id)
                except CatalogNotFound:
                    continue
            raise

    def _add(self, kind: LineKind, entity_id: str, record, quantity: int) -> CartLine:
        if kind == LineKind.INGREDIENT:
            price = record.unit_price
        else:
            price = record.base_price
        return self._store.add(AddRequest(
            id=entity_id,
            kind=kind,
            quantity=quantity,
            name=record.name,
            unit_price=price,
        ))

    async def _restore(self, task: _RestoreTask) -> ReorderResult:
        entry = task.entry
        entity_id = entry.id

        if entry.kind == LineKind.COMPOSITE:
            entity_id = entry.base_id or split_custom_id(entry.id)[0]
            if entry.customization:
                return await self._restore_customized(entry, entity_id)

        try:
            kind, record = await self._resolve(entry.kind, entity_id, task.alternate_kinds)
        except CatalogError as e:
            return await self._decompose(entry, entry.composition, e)

        return ReorderResult(added_lines=[self._add(kind, entity_id, record, entry.quantity)])

    async def _decompose(
        self,
        entry: DetailedEntry,
        composition: Optional[Mapping[str, int]],
        error: CatalogError,
    ) -> ReorderResult:
        """Fold over the recorded composition, collecting lines and warnings."""
        result = ReorderResult()
        if not composition:
            logger.info("Could not restore %s %s: %s", entry.kind.value, entry.id, error)
            result.warnings.append(RestoreWarning(entry.id, entry.kind.value, str(error)))
            return result

        logger.info(
            "%s %s unavailable (%s), restoring its %d ingredients",
            entry.kind.value, entry.id, error, len(composition),
        )
        for ingredient_id, quantity in composition.items():
            if quantity <= 0:
                continue
            try:
                ingredient = await self._gateway.get_ingredient(ingredient_id)
            except CatalogError as e:
                result.warnings.append(RestoreWarning(
                    ingredient_id, LineKind.INGREDIENT.value, str(e), parent_id=entry.id,
                ))
                continue
            result.added_lines.append(self._add(
                LineKind.INGREDIENT, ingredient_id, ingredient, quantity * entry.quantity,
            ))
        return result

    async def _restore_customized(self, entry: DetailedEntry, base_id: str) -> ReorderResult:
        customization: Dict[str, int] = dict(entry.customization)
        try:
            composite = await self._gateway.get_composite(base_id)
        except CatalogError as e:
            return await self._decompose(entry, entry.composition or customization, e)

        result = ReorderResult()
        baseline = baseline_map(composite)
        ingredients = {}
        for ingredient_id, quantity in entry.customization.items():
            if quantity <= baseline.get(ingredient_id, 0):
                continue
            try:
                ingredients[ingredient_id] = await self._gateway.get_ingredient(ingredient_id)
            except CatalogError as e:
                # The extra can no longer be sold; keep the base amount of it
                result.warnings.append(RestoreWarning(
                    ingredient_id, LineKind.INGREDIENT.value, str(e), parent_id=entry.id,
                ))
                customization[ingredient_id] = baseline.get(ingredient_id, 0)

        quote = price_of(composite, customization, ingredients)
        result.added_lines.append(self._store.add(AddRequest(
            id=base_id,
            kind=LineKind.COMPOSITE,
            quantity=entry.quantity,
            name=f"Custom {composite.name}",
            unit_price=quote.total,
            customization=customization,
            customized=True,
        )))
        return result
