"""
Catalog Record Schemas
======================

Pydantic models for the two record shapes the cart engine reads from the
catalog service: ingredients and composites (pre-built salads and user-saved
salads share one shape).

The remote service has grown a few spellings for the same fields over time
("price" vs "total_price", "fats" vs "fat", ingredient lists stored either as
a mapping or as an array), so the models accept all of them and normalize to
a single representation.
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def normalize_composition(value: Any) -> Dict[str, int]:
    """
    Normalize an ingredient list to an id -> quantity mapping.

    Accepts a mapping (null quantities count as 1), a list of ids (each
    occurrence counts once), or a list of {"id", "quantity"} dicts.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return {str(k): 1 if v is None else int(v) for k, v in value.items()}
    if isinstance(value, list):
        result: Dict[str, int] = {}
        for entry in value:
            if isinstance(entry, str):
                result[entry] = result.get(entry, 0) + 1
            elif isinstance(entry, dict) and entry.get("id"):
                qty = entry.get("quantity")
                result[str(entry["id"])] = 1 if qty is None else int(qty)
            else:
                raise ValueError(f"Unrecognized composition entry: {entry!r}")
        return result
    raise ValueError("composition must be a mapping or a list")


class IngredientRecord(BaseModel):
    """An atomic catalog entry with its unit price and nutrition facts."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    unit_price: float = Field(
        default=0.0,
        validation_alias=AliasChoices("unit_price", "price"),
    )
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = Field(default=0.0, validation_alias=AliasChoices("fat", "fats"))
    category: Optional[str] = None
    available: bool = True


class CompositeRecord(BaseModel):
    """
    A catalog-defined bundle of ingredients with a base price.

    Attributes:
        composition: ingredient id -> quantity. Entries without a quantity
            count as 1.
        calories/protein/carbs/fat: declared totals for the unmodified
            composite, when the catalog stores them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    base_price: float = Field(
        default=0.0,
        validation_alias=AliasChoices("base_price", "price", "total_price"),
    )
    composition: Dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("composition", "ingredients"),
    )
    calories: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("calories", "total_calories")
    )
    protein: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("protein", "total_protein")
    )
    carbs: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("carbs", "total_carbs")
    )
    fat: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("fat", "fats", "total_fats")
    )

    @field_validator("composition", mode="before")
    @classmethod
    def _normalize_composition(cls, value: Any) -> Dict[str, int]:
        return normalize_composition(value)

    def declares_nutrition(self) -> bool:
        return all(
            v is not None for v in (self.calories, self.protein, self.carbs, self.fat)
        )
