"""
Cart data model.

The cart is an ordered list of CartLine objects. Lines are identified by
(id, kind); customized composites get a synthesized id so that each act of
customization stays its own line.

Snapshot types at the bottom describe historical orders fed to the reorder
reconstructor. An order is either a DetailedSnapshot (one entry per cart line,
with composition where known) or a LegacySnapshot (the compact
{item_key: quantity} map older orders carry).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..catalog.schemas import CompositeRecord, IngredientRecord, normalize_composition


class LineKind(str, Enum):
    """What a cart line refers to in the catalog."""
    INGREDIENT = "ingredient"  # atomic catalog entry
    COMPOSITE = "composite"  # catalog-defined salad, possibly customized
    SAVED_COMPOSITE = "savedComposite"  # user-authored salad stored server-side


# Kind names used by older order payloads
_KIND_ALIASES = {
    "premade": LineKind.COMPOSITE.value,
    "saved-salad": LineKind.SAVED_COMPOSITE.value,
    "saved_salad": LineKind.SAVED_COMPOSITE.value,
}


def _coerce_kind(value: Any) -> Any:
    if isinstance(value, str):
        return _KIND_ALIASES.get(value, value)
    return value


class CartLine(BaseModel):
    """
    A single line in the cart.

    Attributes:
        id: Catalog id, or "<base>_custom_<millis>" for a customized composite
        kind: Line kind
        quantity: Always >= 1 while the line is in the cart
        name: Display name cached when the line was added
        unit_price: Price cached when the line was added; for a customized
            composite this is the computed total, not the catalog base price
        details: Full catalog record once hydrated, None before that
        customization: Ingredient id -> quantity for customized composites
        base_id: Catalog id of the composite a customized line was built from
        token: Insertion serial used to recognize stale hydration results
    """

    id: str
    kind: LineKind
    quantity: int = Field(ge=1)
    name: str
    unit_price: float = Field(ge=0)
    details: Optional[Union[IngredientRecord, CompositeRecord]] = None
    customization: Optional[Dict[str, int]] = None
    base_id: Optional[str] = None
    token: int = Field(default=0, exclude=True)

    @property
    def is_customized(self) -> bool:
        return self.base_id is not None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def display_fields(self) -> Dict[str, Any]:
        """The cached fields shown in the cart and persisted by the mirror."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "quantity": self.quantity,
            "name": self.name,
            "price": self.unit_price,
        }


class AddRequest(BaseModel):
    """
    An add-to-cart request coming from the storefront or the reconstructor.

    customized marks explicit intent to customize. A request with a non-empty
    customization is treated as customized even without the flag. Only
    composites can be customized.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    kind: LineKind
    quantity: int = Field(default=1, ge=1)
    name: str
    unit_price: float = Field(ge=0, validation_alias=AliasChoices("unit_price", "price"))
    customization: Optional[Dict[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("customization", "customizations"),
    )
    customized: bool = False

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_aliases(cls, value: Any) -> Any:
        return _coerce_kind(value)

    @field_validator("customization", mode="before")
    @classmethod
    def _normalize_customization(cls, value: Any) -> Optional[Dict[str, int]]:
        if value is None:
            return None
        return normalize_composition(value)

    @model_validator(mode="after")
    def _only_composites_customize(self) -> "AddRequest":
        if self.wants_customized_line() and self.kind != LineKind.COMPOSITE:
            raise ValueError(f"only composites can be customized, not {self.kind.value}")
        return self

    def wants_customized_line(self) -> bool:
        return self.customized or bool(self.customization)


@dataclass
class CartNotification:
    """Transient "item added" notice. Expires on its own or when dismissed."""
    name: str
    unit_price: float
    quantity: int
    expires_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price": self.unit_price, "quantity": self.quantity}


# =============================================================================
# Reorder snapshots and results
# =============================================================================

class DetailedEntry(BaseModel):
    """One line of a detailed order snapshot."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    kind: LineKind = Field(validation_alias=AliasChoices("kind", "type"))
    quantity: int = Field(default=1, ge=1)
    name: Optional[str] = None
    composition: Optional[Dict[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("composition", "ingredients"),
    )
    customization: Optional[Dict[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("customization", "customizations"),
    )
    base_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("base_id", "originalSaladId"),
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_aliases(cls, value: Any) -> Any:
        return _coerce_kind(value)

    @field_validator("composition", "customization", mode="before")
    @classmethod
    def _normalize_maps(cls, value: Any) -> Optional[Dict[str, int]]:
        if value is None:
            return None
        return normalize_composition(value)


@dataclass(frozen=True)
class DetailedSnapshot:
    entries: Tuple[DetailedEntry, ...]


@dataclass(frozen=True)
class LegacySnapshot:
    items: Tuple[Tuple[str, int], ...]


OrderSnapshot = Union[DetailedSnapshot, LegacySnapshot]


@dataclass
class RestoreWarning:
    """An entity the reconstructor could not bring back."""
    entity_id: str
    kind: str
    reason: str
    parent_id: Optional[str] = None

    @property
    def message(self) -> str:
        return f"could not restore: {self.entity_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "kind": self.kind,
            "reason": self.reason,
            "parent_id": self.parent_id,
            "message": self.message,
        }


@dataclass
class ReorderResult:
    added_lines: List[CartLine] = field(default_factory=list)
    warnings: List[RestoreWarning] = field(default_factory=list)

    def extend(self, other: "ReorderResult") -> None:
        self.added_lines.extend(other.added_lines)
        self.warnings.extend(other.warnings)
