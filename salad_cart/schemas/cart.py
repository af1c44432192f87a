"""
Cart Schemas for Salad Cart
===========================

This module defines Pydantic models for the cart HTTP endpoints. Add
requests reuse the engine's AddRequest model directly; the models here cover
the remaining request bodies and every response shape.

Endpoint Coverage:
------------------
- GET /cart/{session_id}: CartOut
- POST /cart/{session_id}/items: AddRequest -> CartOut
- PUT /cart/{session_id}/items/{kind}/{item_id}: QuantityUpdate -> CartOut
- POST /cart/{session_id}/reorder: order payload -> ReorderOut
- POST /cart/{session_id}/checkout: CheckoutRequest -> CheckoutOut
- POST /composites/{composite_id}/quote: QuoteRequest -> QuoteOut

Response Shape:
---------------
Cart lines expose the cached display fields plus the customization and
whether catalog details have been loaded yet. Full catalog records are not
included; the storefront reads those from the catalog itself.

Usage:
------
    cart = CartOut.model_validate(store.snapshot())
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..catalog.schemas import normalize_composition


class CartLineOut(BaseModel):
    """
    Response model for one cart line.

    Attributes:
        id: Catalog id or synthesized id of a customized composite
        kind: ingredient, composite or savedComposite
        quantity: Number of units
        name: Display name cached at add time
        price: Unit price cached at add time
        customization: Ingredient map for customized composites
        base_id: Composite a customized line was built from
        hydrated: Whether catalog details have arrived
    """
    id: str
    kind: str
    quantity: int
    name: str
    price: float
    customization: Optional[Dict[str, int]] = None
    base_id: Optional[str] = None
    hydrated: bool = False


class NotificationOut(BaseModel):
    """The transient "item added" notice."""
    name: str
    price: float
    quantity: int


class CartOut(BaseModel):
    """Response model for a whole cart."""
    lines: List[CartLineOut]
    line_count: int
    subtotal: float
    notification: Optional[NotificationOut] = None


class QuantityUpdate(BaseModel):
    """Request body for setting a line's quantity. Zero or less removes it."""
    quantity: int


class RestoreWarningOut(BaseModel):
    """One entity the reorder could not bring back."""
    entity_id: str
    kind: str
    reason: str
    parent_id: Optional[str] = None
    message: str


class ReorderOut(BaseModel):
    """
    Response model for a reorder.

    Attributes:
        cart: Cart after reconstruction
        added: Number of add operations that landed
        warnings: Entities that could not be restored
    """
    cart: CartOut
    added: int
    warnings: List[RestoreWarningOut] = Field(default_factory=list)


class CheckoutRequest(BaseModel):
    """
    Optional order fields sent with a checkout.

    Unknown fields are passed through to the order record.
    """
    model_config = ConfigDict(extra="allow")

    user_id: Optional[str] = None
    delivery_option: Optional[str] = None
    notes: Optional[str] = None

    def order_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CheckoutOut(BaseModel):
    """Response model for a placed order."""
    order_id: str
    total: float
    items_detail: List[Dict[str, Any]]
    items: Dict[str, int]


class QuoteRequest(BaseModel):
    """
    Request body for a composite price/nutrition preview.

    customization is the full ingredient map; omit it to quote the
    unmodified composite.
    """
    model_config = ConfigDict(populate_by_name=True)

    customization: Optional[Dict[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("customization", "customizations", "ingredients"),
    )

    @field_validator("customization", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Optional[Dict[str, int]]:
        if value is None:
            return None
        return normalize_composition(value)


class NutritionOut(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float


class QuoteOut(BaseModel):
    """Response model for a composite quote."""
    composite_id: str
    name: str
    base_price: float
    total: float
    delta_from_base: float
    nutrition: NutritionOut
    missing_ingredients: List[str] = Field(default_factory=list)
