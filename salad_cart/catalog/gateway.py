"""
Catalog Gateway
===============

The cart engine's only window onto the remote catalog/order service. Every
call is async and resolves a single entity, so callers can recover from a
failure one entity at a time.

Failure Contract:
-----------------
- CatalogNotFound: the entity does not exist (deleted, or never existed).
- HydrationFailure: the service could not be reached, timed out, or returned
  something that does not parse as the expected record.

Implementations:
----------------
- PocketBaseCatalogGateway: talks to the document service over HTTP with
  requests. Blocking calls run in a worker thread so the event loop keeps
  serving cart mutations while a lookup is in flight.
- StaticCatalogGateway: in-memory records, seeded from dicts or a JSON file.
  Used for local runs without the remote service and for tests.

Usage:
------
    gateway = PocketBaseCatalogGateway("http://127.0.0.1:8090")
    ingredient = await gateway.get_ingredient("abc123")
    composite = await gateway.get(KIND_COMPOSITE, "xyz789")
"""

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import ValidationError

from ..errors import CatalogNotFound, HydrationFailure
from .schemas import CompositeRecord, IngredientRecord

logger = logging.getLogger(__name__)

KIND_INGREDIENT = "ingredient"
KIND_COMPOSITE = "composite"
KIND_SAVED_COMPOSITE = "savedComposite"

CatalogRecord = Union[IngredientRecord, CompositeRecord]


class CatalogGateway(ABC):
    """Read/write contract with the catalog service."""

    @abstractmethod
    async def get_ingredient(self, ingredient_id: str) -> IngredientRecord:
        ...

    @abstractmethod
    async def get_composite(self, composite_id: str) -> CompositeRecord:
        ...

    @abstractmethod
    async def get_saved_composite(self, composite_id: str) -> CompositeRecord:
        ...

    @abstractmethod
    async def create_order(self, payload: Dict[str, Any]) -> str:
        """Submit an order payload and return the new order id."""

    async def get(self, kind: str, entity_id: str) -> CatalogRecord:
        """Dispatch a lookup by line kind."""
        if kind == KIND_INGREDIENT:
            return await self.get_ingredient(entity_id)
        if kind == KIND_COMPOSITE:
            return await self.get_composite(entity_id)
        if kind == KIND_SAVED_COMPOSITE:
            return await self.get_saved_composite(entity_id)
        raise ValueError(f"Unknown catalog kind: {kind}")

    async def get_ingredients(self, ingredient_ids) -> Dict[str, IngredientRecord]:
        """
        Resolve several ingredients, skipping the ones that fail.

        Returns:
            Mapping of ingredient id -> record for every id that resolved.
        """
        found: Dict[str, IngredientRecord] = {}
        for ingredient_id in ingredient_ids:
            try:
                found[ingredient_id] = await self.get_ingredient(ingredient_id)
            except (CatalogNotFound, HydrationFailure) as e:
                logger.info("Skipping ingredient %s: %s", ingredient_id, e)
        return found


# =============================================================================
# Remote document service
# =============================================================================

class PocketBaseCatalogGateway(CatalogGateway):
    """
    Catalog gateway backed by the storefront's document service.

    Records are read from /api/collections/<collection>/records/<id>.
    Saved composites live in "user_salads"; older orders may point at a
    salad that was stored in the shared "salads" collection instead, so a
    miss in "user_salads" falls back to "salads".
    """

    INGREDIENTS = "ingredients"
    SALADS = "salads"
    USER_SALADS = "user_salads"
    ORDERS = "orders"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        auth_token: Optional[str] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._auth_token = auth_token

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth_token:
            headers["Authorization"] = self._auth_token
        return headers

    def _record_url(self, collection: str, record_id: str = "") -> str:
        url = f"{self._base_url}/api/collections/{collection}/records"
        if record_id:
            url = f"{url}/{record_id}"
        return url

    def _fetch_record(self, collection: str, record_id: str, kind: str) -> Dict[str, Any]:
        """Blocking GET of a single record. Runs in a worker thread."""
        logger.debug("Fetching %s/%s", collection, record_id)
        try:
            response = requests.get(
                self._record_url(collection, record_id),
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise HydrationFailure(record_id, kind, str(e)) from e

        if response.status_code == 404:
            raise CatalogNotFound(record_id, kind)
        try:
            response.raise_for_status()
            return response.json()
        except (requests.HTTPError, ValueError) as e:
            raise HydrationFailure(record_id, kind, str(e)) from e

    async def _get(self, collection: str, record_id: str, kind: str, model):
        data = await asyncio.to_thread(self._fetch_record, collection, record_id, kind)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise HydrationFailure(record_id, kind, f"unreadable record: {e}") from e

    async def get_ingredient(self, ingredient_id: str) -> IngredientRecord:
        return await self._get(self.INGREDIENTS, ingredient_id, KIND_INGREDIENT, IngredientRecord)

    async def get_composite(self, composite_id: str) -> CompositeRecord:
        return await self._get(self.SALADS, composite_id, KIND_COMPOSITE, CompositeRecord)

    async def get_saved_composite(self, composite_id: str) -> CompositeRecord:
        try:
            return await self._get(
                self.USER_SALADS, composite_id, KIND_SAVED_COMPOSITE, CompositeRecord
            )
        except CatalogNotFound:
            logger.debug("Saved salad %s not in user_salads, trying salads", composite_id)
            return await self._get(
                self.SALADS, composite_id, KIND_SAVED_COMPOSITE, CompositeRecord
            )

    def _post_order(self, payload: Dict[str, Any]) -> str:
        try:
            response = requests.post(
                self._record_url(self.ORDERS),
                json=payload,
                headers=self._headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            return str(response.json()["id"])
        except (requests.RequestException, ValueError, KeyError) as e:
            raise HydrationFailure("", "order", str(e)) from e

    async def create_order(self, payload: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self._post_order, payload)


# =============================================================================
# In-memory catalog
# =============================================================================

class StaticCatalogGateway(CatalogGateway):
    """
    Catalog gateway over in-memory records.

    Args:
        ingredients: ingredient id -> raw record dict (or IngredientRecord)
        composites: composite id -> raw record dict (or CompositeRecord)
        saved_composites: saved composite id -> raw record dict
    """

    def __init__(
        self,
        ingredients: Optional[Dict[str, Any]] = None,
        composites: Optional[Dict[str, Any]] = None,
        saved_composites: Optional[Dict[str, Any]] = None,
    ):
        self.ingredients: Dict[str, IngredientRecord] = {
            k: _as_record(IngredientRecord, k, v) for k, v in (ingredients or {}).items()
        }
        self.composites: Dict[str, CompositeRecord] = {
            k: _as_record(CompositeRecord, k, v) for k, v in (composites or {}).items()
        }
        self.saved_composites: Dict[str, CompositeRecord] = {
            k: _as_record(CompositeRecord, k, v) for k, v in (saved_composites or {}).items()
        }
        self.orders: List[Dict[str, Any]] = []

    @classmethod
    def from_file(cls, path: str) -> "StaticCatalogGateway":
        """Load a seed file with "ingredients", "composites" and "saved_composites" keys."""
        with open(Path(path), "r") as f:
            data = json.load(f)
        logger.info("Loaded static catalog from %s", path)
        return cls(
            ingredients=data.get("ingredients"),
            composites=data.get("composites"),
            saved_composites=data.get("saved_composites"),
        )

    async def get_ingredient(self, ingredient_id: str) -> IngredientRecord:
        try:
            return self.ingredients[ingredient_id]
        except KeyError:
            raise CatalogNotFound(ingredient_id, KIND_INGREDIENT) from None

    async def get_composite(self, composite_id: str) -> CompositeRecord:
        try:
            return self.composites[composite_id]
        except KeyError:
            raise CatalogNotFound(composite_id, KIND_COMPOSITE) from None

    async def get_saved_composite(self, composite_id: str) -> CompositeRecord:
        try:
            return self.saved_composites[composite_id]
        except KeyError:
            raise CatalogNotFound(composite_id, KIND_SAVED_COMPOSITE) from None

    async def create_order(self, payload: Dict[str, Any]) -> str:
        order_id = uuid.uuid4().hex[:15]
        self.orders.append({"id": order_id, **payload})
        return order_id


def _as_record(model, record_id: str, value: Any):
    if isinstance(value, model):
        return value
    return model.model_validate({"id": record_id, **value})
