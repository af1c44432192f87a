"""
Pricing and Nutrition for Composite Items.

A composite (pre-built salad) has a base price and a declared composition.
A customization is the full current ingredient map for one cart line. Both
price and nutrition are computed by diffing the customization against the
baseline map built from the composition, but with different policies:

- Price is monotonic: ingredients above their baseline quantity add
  (extra quantity x unit price). Ingredients reduced or removed never refund,
  so a customized composite never costs less than its base price.
- Nutrition follows the diff in both directions: removing an ingredient
  lowers calories and macros.

CompositeBuilder keeps running totals for the customize/build-your-own
editor, updating them per edit instead of re-diffing the whole map.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ..catalog.schemas import CompositeRecord, IngredientRecord
from .models import AddRequest, LineKind

logger = logging.getLogger(__name__)

NUTRIENTS = ("calories", "protein", "carbs", "fat")


@dataclass(frozen=True)
class PriceQuote:
    total: float
    delta_from_base: float


@dataclass(frozen=True)
class NutritionTotals:
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in NUTRIENTS}


def baseline_map(composite: CompositeRecord) -> Dict[str, int]:
    """Ingredient id -> quantity for the unmodified composite."""
    return {ing_id: (1 if qty is None else qty) for ing_id, qty in composite.composition.items()}


def _extra_cost(
    ingredient_id: str,
    quantity: int,
    baseline: Mapping[str, int],
    ingredients: Mapping[str, IngredientRecord],
) -> float:
    extra = quantity - baseline.get(ingredient_id, 0)
    if extra <= 0:
        return 0.0
    record = ingredients.get(ingredient_id)
    if record is None:
        logger.warning("No price for ingredient %s, extra quantity not charged", ingredient_id)
        return 0.0
    return extra * record.unit_price


def price_of(
    composite: CompositeRecord,
    customization: Optional[Mapping[str, int]],
    ingredients: Mapping[str, IngredientRecord],
) -> PriceQuote:
    """
    Price a composite with a customization applied.

    Args:
        composite: The base composite
        customization: Full current ingredient map, or None for the unmodified composite
        ingredients: Ingredient records by id, used for unit prices

    Returns:
        PriceQuote with the total and the part attributable to extras
    """
    baseline = baseline_map(composite)
    delta = 0.0
    for ingredient_id, quantity in (customization or {}).items():
        delta += _extra_cost(ingredient_id, quantity, baseline, ingredients)
    return PriceQuote(
        total=round(composite.base_price + delta, 2),
        delta_from_base=round(delta, 2),
    )


def _base_nutrition(
    composite: CompositeRecord,
    baseline: Mapping[str, int],
    ingredients: Mapping[str, IngredientRecord],
) -> Dict[str, float]:
    if composite.declares_nutrition():
        return {name: float(getattr(composite, name)) for name in NUTRIENTS}

    totals = {name: 0.0 for name in NUTRIENTS}
    for ingredient_id, quantity in baseline.items():
        record = ingredients.get(ingredient_id)
        if record is None:
            continue
        for name in NUTRIENTS:
            totals[name] += quantity * getattr(record, name)
    return totals


def nutrition_of(
    composite: CompositeRecord,
    customization: Optional[Mapping[str, int]],
    ingredients: Mapping[str, IngredientRecord],
) -> NutritionTotals:
    """
    Nutrition totals for a composite with a customization applied.

    A base ingredient missing from the customization counts as removed.
    """
    baseline = baseline_map(composite)
    current = baseline if customization is None else customization
    totals = _base_nutrition(composite, baseline, ingredients)

    for ingredient_id in set(baseline) | set(current):
        change = current.get(ingredient_id, 0) - baseline.get(ingredient_id, 0)
        if change == 0:
            continue
        record = ingredients.get(ingredient_id)
        if record is None:
            logger.debug("No nutrition facts for ingredient %s", ingredient_id)
            continue
        for name in NUTRIENTS:
            totals[name] += change * getattr(record, name)

    return NutritionTotals(**{name: round(value, 2) for name, value in totals.items()})


class CompositeBuilder:
    """
    Editable customization of one composite with running price/nutrition totals.

    Usage:
        builder = CompositeBuilder(composite, ingredients)
        builder.adjust("cheese", +2)
        builder.remove("lettuce")
        builder.quote()        # PriceQuote(total=8.0, delta_from_base=3.0)
        store.add(builder.to_add_request(quantity=1))
    """

    def __init__(self, composite: CompositeRecord, ingredients: Mapping[str, IngredientRecord]):
        self.composite = composite
        self._ingredients = dict(ingredients)
        self._baseline = baseline_map(composite)
        self.reset()

    def reset(self) -> None:
        """Back to the unmodified composite."""
        self._current: Dict[str, int] = dict(self._baseline)
        self._extra_cost = 0.0
        base = _base_nutrition(self.composite, self._baseline, self._ingredients)
        self._nutrition: Dict[str, float] = base

    @property
    def current(self) -> Dict[str, int]:
        return dict(self._current)

    def quantity_of(self, ingredient_id: str) -> int:
        return self._current.get(ingredient_id, 0)

    def set(self, ingredient_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError(f"Quantity for {ingredient_id} cannot be negative")
        old = self._current.get(ingredient_id, 0)
        if old == quantity:
            return

        self._extra_cost += (
            _extra_cost(ingredient_id, quantity, self._baseline, self._ingredients)
            - _extra_cost(ingredient_id, old, self._baseline, self._ingredients)
        )
        record = self._ingredients.get(ingredient_id)
        if record is not None:
            for name in NUTRIENTS:
                self._nutrition[name] += (quantity - old) * getattr(record, name)

        self._current[ingredient_id] = quantity

    def adjust(self, ingredient_id: str, delta: int) -> None:
        self.set(ingredient_id, max(0, self.quantity_of(ingredient_id) + delta))

    def remove(self, ingredient_id: str) -> None:
        self.set(ingredient_id, 0)

    @property
    def is_modified(self) -> bool:
        def nonzero(mapping):
            return {k: v for k, v in mapping.items() if v}
        return nonzero(self._current) != nonzero(self._baseline)

    def quote(self) -> PriceQuote:
        return PriceQuote(
            total=round(self.composite.base_price + self._extra_cost, 2),
            delta_from_base=round(self._extra_cost, 2),
        )

    def nutrition(self) -> NutritionTotals:
        return NutritionTotals(**{name: round(v, 2) for name, v in self._nutrition.items()})

    def to_add_request(self, quantity: int = 1) -> AddRequest:
        """Build a customized add request priced at the current total."""
        return AddRequest(
            id=self.composite.id,
            kind=LineKind.COMPOSITE,
            quantity=quantity,
            name=f"Custom {self.composite.name}",
            unit_price=self.quote().total,
            customization=self.current,
            customized=True,
        )
