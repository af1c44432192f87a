"""
Tests for line identity resolution and customized line ids.
"""
import pytest

from salad_cart.cart.identity import (
    InsertNew,
    LineIdentityResolver,
    Merge,
    make_custom_id,
    split_custom_id,
)
from salad_cart.cart.models import AddRequest, CartLine, LineKind


def _plain(line_id, kind=LineKind.INGREDIENT, quantity=1):
    return CartLine(id=line_id, kind=kind, quantity=quantity, name=line_id, unit_price=1.0)


class TestResolvePlainItems:
    """Requests without customization merge by (id, kind)."""

    def test_new_item_inserts_with_catalog_id(self):
        """Test that an item not in the cart is inserted under its own id."""
        resolver = LineIdentityResolver()
        request = AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25)

        assert resolver.resolve(request, []) == InsertNew(line_id="feta")

    def test_matching_item_merges(self):
        """Test that the same (id, kind) merges with the existing line."""
        resolver = LineIdentityResolver()
        request = AddRequest(id="feta", kind="ingredient", name="Feta", price=1.25)

        assert resolver.resolve(request, [_plain("feta")]) == Merge(existing_id="feta")

    def test_same_id_different_kind_does_not_merge(self):
        """Test that an ingredient and a composite sharing an id stay separate."""
        resolver = LineIdentityResolver()
        request = AddRequest(id="garden", kind="composite", name="Garden Salad", price=5.0)

        resolution = resolver.resolve(request, [_plain("garden", kind=LineKind.INGREDIENT)])
        assert resolution == InsertNew(line_id="garden")

    def test_empty_customization_counts_as_plain(self):
        """Test that an empty customization map does not force a new line."""
        resolver = LineIdentityResolver()
        request = AddRequest(
            id="garden", kind="composite", name="Garden Salad", price=5.0, customization={},
        )

        existing = _plain("garden", kind=LineKind.COMPOSITE)
        assert resolver.resolve(request, [existing]) == Merge(existing_id="garden")

    def test_plain_add_skips_customized_lines(self):
        """Test that a plain request never merges into a customized line."""
        resolver = LineIdentityResolver()
        customized = CartLine(
            id="garden", kind=LineKind.COMPOSITE, quantity=1, name="Custom Garden Salad",
            unit_price=8.0, customization={"lettuce": 1, "cheese": 2}, base_id="garden",
        )
        request = AddRequest(id="garden", kind="composite", name="Garden Salad", price=5.0)

        assert resolver.resolve(request, [customized]) == InsertNew(line_id="garden")


class TestResolveCustomizedItems:
    """Customized composites always get a synthesized id."""

    def test_customized_request_gets_synthesized_id(self):
        """Test that a customization produces "<base>_custom_<millis>"."""
        resolver = LineIdentityResolver(clock=lambda: 1700000000.5)
        request = AddRequest(
            id="garden", kind="composite", name="Custom Garden Salad", price=8.0,
            customization={"lettuce": 1, "cheese": 2},
        )

        resolution = resolver.resolve(request, [])
        assert resolution == InsertNew(line_id="garden_custom_1700000000500", base_id="garden")

    def test_explicit_flag_without_changes_still_customizes(self):
        """Test that customized=True is honored even with no customization map."""
        resolver = LineIdentityResolver(clock=lambda: 1.0)
        request = AddRequest(
            id="garden", kind="composite", name="Garden Salad", price=5.0, customized=True,
        )

        resolution = resolver.resolve(request, [_plain("garden", kind=LineKind.COMPOSITE)])
        assert isinstance(resolution, InsertNew)
        assert resolution.base_id == "garden"

    def test_ids_unique_within_same_millisecond(self):
        """Test that a frozen clock still yields strictly increasing ids."""
        resolver = LineIdentityResolver(clock=lambda: 1.0)
        request = AddRequest(
            id="garden", kind="composite", name="Custom Garden Salad", price=8.0,
            customization={"cheese": 2},
        )

        first = resolver.resolve(request, [])
        second = resolver.resolve(request, [])
        assert first.line_id == "garden_custom_1000"
        assert second.line_id == "garden_custom_1001"


class TestCustomIds:
    """Test building and splitting synthesized ids."""

    def test_split_recovers_base_id(self):
        assert split_custom_id(make_custom_id("garden", 1234)) == ("garden", True)

    def test_split_base_id_containing_underscores(self):
        assert split_custom_id("my_big_salad_custom_99") == ("my_big_salad", True)

    def test_split_plain_id(self):
        assert split_custom_id("garden") == ("garden", False)

    def test_split_requires_numeric_suffix(self):
        """Test that a marker followed by text is not treated as customized."""
        assert split_custom_id("garden_custom_mix") == ("garden_custom_mix", False)


class TestCustomizationScope:
    """Only composites can carry a customization."""

    def test_customized_ingredient_rejected(self):
        with pytest.raises(ValueError):
            AddRequest(
                id="lettuce", kind="ingredient", name="Lettuce", price=0.5,
                customization={"cheese": 2},
            )

    def test_customized_flag_on_saved_composite_rejected(self):
        with pytest.raises(ValueError):
            AddRequest(id="mine", kind="savedComposite", name="My Salad", price=6.5, customized=True)

    def test_empty_customization_allowed_on_ingredient(self):
        """Test that an empty map on an ingredient is just a plain add."""
        resolver = LineIdentityResolver()
        request = AddRequest(
            id="lettuce", kind="ingredient", name="Lettuce", price=0.5, customization={},
        )

        assert resolver.resolve(request, [_plain("lettuce")]) == Merge(existing_id="lettuce")
