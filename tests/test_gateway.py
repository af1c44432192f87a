"""
Tests for the catalog gateways.
"""
import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from salad_cart.catalog.gateway import (
    KIND_COMPOSITE,
    KIND_INGREDIENT,
    PocketBaseCatalogGateway,
    StaticCatalogGateway,
)
from salad_cart.errors import CatalogNotFound, HydrationFailure


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestPocketBaseGateway:
    """Tests for the remote document service gateway."""

    def test_get_ingredient_reads_record(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test/", timeout=2)
        record = {"id": "feta", "name": "Feta", "price": 1.25, "fats": 6, "collectionId": "x"}

        with patch("salad_cart.catalog.gateway.requests.get", return_value=_response(200, record)) as mock_get:
            ingredient = asyncio.run(gateway.get_ingredient("feta"))

        assert ingredient.unit_price == 1.25
        assert ingredient.fat == 6
        url = mock_get.call_args[0][0]
        assert url == "http://catalog.test/api/collections/ingredients/records/feta"
        assert mock_get.call_args[1]["timeout"] == 2

    def test_missing_record_raises_not_found(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test")

        with patch("salad_cart.catalog.gateway.requests.get", return_value=_response(404)):
            with pytest.raises(CatalogNotFound):
                asyncio.run(gateway.get_composite("gone"))

    def test_timeout_raises_hydration_failure(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test")

        with patch("salad_cart.catalog.gateway.requests.get", side_effect=requests.Timeout("slow")):
            with pytest.raises(HydrationFailure) as exc_info:
                asyncio.run(gateway.get_ingredient("feta"))

        assert exc_info.value.entity_id == "feta"
        assert exc_info.value.kind == KIND_INGREDIENT

    def test_server_error_raises_hydration_failure(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test")

        with patch("salad_cart.catalog.gateway.requests.get", return_value=_response(500)):
            with pytest.raises(HydrationFailure):
                asyncio.run(gateway.get_ingredient("feta"))

    def test_unreadable_record_raises_hydration_failure(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test")

        with patch("salad_cart.catalog.gateway.requests.get", return_value=_response(200, {"id": "feta"})):
            with pytest.raises(HydrationFailure):
                asyncio.run(gateway.get_ingredient("feta"))

    def test_saved_composite_falls_back_to_salads(self):
        """Test that a miss in user_salads is retried in salads."""
        gateway = PocketBaseCatalogGateway("http://catalog.test")
        salad = {"id": "old", "name": "Old Salad", "total_price": 6.0, "ingredients": ["feta"]}

        with patch(
            "salad_cart.catalog.gateway.requests.get",
            side_effect=[_response(404), _response(200, salad)],
        ) as mock_get:
            composite = asyncio.run(gateway.get_saved_composite("old"))

        assert composite.base_price == 6.0
        assert composite.composition == {"feta": 1}
        urls = [c[0][0] for c in mock_get.call_args_list]
        assert urls[0].endswith("/user_salads/records/old")
        assert urls[1].endswith("/salads/records/old")

    def test_create_order_posts_payload(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test", auth_token="secret")

        with patch(
            "salad_cart.catalog.gateway.requests.post",
            return_value=_response(200, {"id": "order123"}),
        ) as mock_post:
            order_id = asyncio.run(gateway.create_order({"items": {"feta": 1}}))

        assert order_id == "order123"
        assert mock_post.call_args[1]["json"] == {"items": {"feta": 1}}
        assert mock_post.call_args[1]["headers"]["Authorization"] == "secret"

    def test_create_order_failure(self):
        gateway = PocketBaseCatalogGateway("http://catalog.test")

        with patch(
            "salad_cart.catalog.gateway.requests.post",
            side_effect=requests.ConnectionError("down"),
        ):
            with pytest.raises(HydrationFailure):
                asyncio.run(gateway.create_order({"items": {}}))


class TestStaticGateway:
    """Tests for the in-memory catalog."""

    def test_dispatch_by_kind(self, gateway):
        record = asyncio.run(gateway.get(KIND_COMPOSITE, "garden"))
        assert record.name == "Garden Salad"

    def test_unknown_kind_raises(self, gateway):
        with pytest.raises(ValueError):
            asyncio.run(gateway.get("drink", "cola"))

    def test_get_ingredients_skips_missing(self, gateway):
        found = asyncio.run(gateway.get_ingredients(["feta", "ghost", "tomato"]))
        assert set(found) == {"feta", "tomato"}

    def test_from_file(self, tmp_path):
        seed = tmp_path / "catalog.json"
        seed.write_text(json.dumps({
            "ingredients": {"feta": {"name": "Feta", "price": 1.25}},
            "composites": {"greek": {"name": "Greek Salad", "price": 7.0, "ingredients": ["feta"]}},
        }))

        gateway = StaticCatalogGateway.from_file(str(seed))

        assert asyncio.run(gateway.get_ingredient("feta")).unit_price == 1.25
        with pytest.raises(CatalogNotFound):
            asyncio.run(gateway.get_saved_composite("greek"))

    def test_create_order_records_payload(self, gateway):
        order_id = asyncio.run(gateway.create_order({"total": 5.0}))

        assert gateway.orders == [{"id": order_id, "total": 5.0}]
        assert len(order_id) == 15
