"""
Tests for order payloads and checkout.
"""
import asyncio

import pytest

from salad_cart.cart.checkout import build_order_payload, checkout
from salad_cart.cart.mirror import DurableMirror
from salad_cart.cart.models import AddRequest, LineKind
from salad_cart.cart.store import CartStore
from salad_cart.catalog.gateway import StaticCatalogGateway
from salad_cart.errors import EmptyCart, HydrationFailure


class FailingOrderGateway(StaticCatalogGateway):
    async def create_order(self, payload):
        raise HydrationFailure("", "order", "service unavailable")


class SlowOrderGateway(StaticCatalogGateway):
    """Holds every order submission until release is set."""

    def __init__(self, base: StaticCatalogGateway):
        super().__init__(base.ingredients, base.composites, base.saved_composites)
        self.submitting = None
        self.release = None

    async def create_order(self, payload):
        self.submitting.set()
        await self.release.wait()
        return await super().create_order(payload)


def _checkout_while(store, gateway, during):
    """Run checkout and call during(store) while the order is in flight."""
    async def scenario():
        gateway.submitting = asyncio.Event()
        gateway.release = asyncio.Event()
        task = asyncio.create_task(checkout(store))
        await gateway.submitting.wait()
        during(store)
        gateway.release.set()
        return await task

    return asyncio.run(scenario())


@pytest.fixture
def filled_store(gateway):
    store = CartStore(gateway)
    store.add(AddRequest(id="feta", kind="ingredient", quantity=2, name="Feta", price=1.25))
    store.add(AddRequest(id="mine", kind="savedComposite", name="My Salad", price=6.5))
    store.add(AddRequest(
        id="garden", kind="composite", name="Custom Garden Salad", price=8.0,
        customization={"lettuce": 1, "cheese": 2},
    ))
    return store


class TestBuildOrderPayload:
    """Test the two item formats written into an order."""

    def test_totals_and_status(self, filled_store):
        payload = build_order_payload(filled_store, {"user_id": "u1"})

        assert payload["total"] == 17.0
        assert payload["status"] == "pending"
        assert payload["user_id"] == "u1"

    def test_legacy_map_keys(self, filled_store):
        payload = build_order_payload(filled_store)
        custom_id = filled_store.lines[2].id

        assert payload["items"] == {"feta": 2, "salad_mine": 1, custom_id: 1}

    def test_detailed_entries(self, filled_store):
        payload = build_order_payload(filled_store)
        feta, mine, custom = payload["items_detail"]

        assert feta == {"id": "feta", "kind": "ingredient", "name": "Feta", "price": 1.25, "quantity": 2}
        assert mine["kind"] == "savedComposite"
        assert custom["base_id"] == "garden"
        assert custom["customization"] == {"lettuce": 1, "cheese": 2}

    def test_hydrated_composite_records_composition(self, gateway):
        store = CartStore(gateway)
        store.add(AddRequest(id="greek", kind="composite", name="Greek Salad", price=7.0))
        asyncio.run(store.hydrate_pending())

        (entry,) = build_order_payload(store)["items_detail"]
        assert entry["composition"] == {"lettuce": 1, "tomato": 1, "feta": 1}


class TestCheckout:
    """Test order submission."""

    def test_checkout_places_order_and_clears(self, gateway, session_factory):
        store = CartStore(gateway, mirror=DurableMirror(session_factory, "s1"))
        store.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        order_id, payload = asyncio.run(checkout(store, {"delivery_option": "pickup"}))

        assert gateway.orders[0]["id"] == order_id
        assert gateway.orders[0]["delivery_option"] == "pickup"
        assert payload["items"] == {"feta": 1}
        assert store.is_empty
        assert DurableMirror(session_factory, "s1").load() == []

    def test_empty_cart_raises(self, gateway):
        with pytest.raises(EmptyCart):
            asyncio.run(checkout(CartStore(gateway)))

    def test_failed_submission_keeps_cart(self, gateway):
        failing = FailingOrderGateway(gateway.ingredients, gateway.composites)
        store = CartStore(failing)
        store.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        with pytest.raises(HydrationFailure):
            asyncio.run(checkout(store))

        assert store.line_count == 1


class TestCheckoutInFlight:
    """Test cart changes made while an order is being submitted."""

    def test_line_added_during_submit_stays(self, gateway, session_factory):
        slow = SlowOrderGateway(gateway)
        store = CartStore(slow, mirror=DurableMirror(session_factory, "s1"))
        store.add(AddRequest(id="lettuce", kind="ingredient", name="Lettuce", price=0.5))

        def add_feta(s):
            s.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        _, payload = _checkout_while(store, slow, add_feta)

        assert payload["items"] == {"lettuce": 1}
        assert [line.id for line in store.lines] == ["feta"]
        assert [line.id for line in DurableMirror(session_factory, "s1").load()] == ["feta"]

    def test_quantity_merged_during_submit_stays(self, gateway):
        """Test that only the ordered quantity leaves a line that grew in flight."""
        slow = SlowOrderGateway(gateway)
        store = CartStore(slow)
        store.add(AddRequest(id="feta", kind="ingredient", quantity=2, name="Feta", price=1.25))

        def add_more_feta(s):
            s.add(AddRequest(id="feta", kind="ingredient", quantity=3, name="Feta", price=1.25))

        _, payload = _checkout_while(store, slow, add_more_feta)

        assert payload["items"] == {"feta": 2}
        assert [(line.id, line.quantity) for line in store.lines] == [("feta", 3)]

    def test_readded_line_during_submit_stays(self, gateway):
        """Test that a line removed and added again in flight is a new line."""
        slow = SlowOrderGateway(gateway)
        store = CartStore(slow)
        store.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        def readd_feta(s):
            s.remove("feta", LineKind.INGREDIENT)
            s.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        _checkout_while(store, slow, readd_feta)

        assert [(line.id, line.quantity) for line in store.lines] == [("feta", 1)]

    def test_nothing_added_empties_cart(self, gateway):
        slow = SlowOrderGateway(gateway)
        store = CartStore(slow)
        store.add(AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25))

        _checkout_while(store, slow, lambda s: None)

        assert store.is_empty
        assert store.notification is None
