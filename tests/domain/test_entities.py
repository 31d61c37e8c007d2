"""Tests for domain entities and value objects."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from storefront.domain import (
    BulkPriceTier,
    Category,
    CustomerType,
    Inventory,
    StockStatus,
    Variation,
    round_money,
)


# ============================================================================
# Entity Tests
# ============================================================================


class TestEntityIdentity:
    """Tests for identity-based equality."""

    def test_new_entities_get_distinct_ids(self) -> None:
        """Each entity gets its own generated ID."""
        first = Category(name="Books")
        second = Category(name="Books")
        assert first.id != second.id
        assert first != second

    def test_same_id_is_equal(self) -> None:
        """Entities with the same ID are equal regardless of other fields."""
        first = Category(id="cat-1", name="Books")
        second = Category(id="cat-1", name="Renamed")
        assert first == second
        assert hash(first) == hash(second)

    def test_different_types_are_not_equal(self) -> None:
        """A category never equals a variation with the same ID."""
        category = Category(id="same", name="Books")
        variation = Variation(id="same", product_id="p-1", sku="SKU-1")
        assert category != variation

    def test_touch_moves_updated_at(self) -> None:
        """touch() refreshes updated_at without changing created_at."""
        category = Category(name="Books")
        created = category.created_at
        before = category.updated_at

        category.touch()

        assert category.created_at == created
        assert category.updated_at >= before


class TestCategory:
    """Tests for category defaults."""

    def test_root_defaults(self) -> None:
        """New categories start as active roots."""
        category = Category(name="Electronics")
        assert category.is_root
        assert category.ancestors == []
        assert category.level == 0
        assert category.materialized_path == "/"
        assert category.is_active
        assert not category.is_deleted

    def test_breadcrumb_entry(self) -> None:
        """Breadcrumb entries carry id, name, slug and level only."""
        category = Category(id="c1", name="Laptops", slug="laptops", level=1)
        assert category.breadcrumb_entry() == {
            "id": "c1",
            "name": "Laptops",
            "slug": "laptops",
            "level": 1,
        }


class TestVariation:
    """Tests for variation defaults."""

    def test_legacy_only_variation(self) -> None:
        """Nested structures are optional."""
        variation = Variation(product_id="p-1", sku="SKU-1", price=10.0, quantity=3)
        assert variation.pricing is None
        assert variation.inventory is None
        assert not variation.is_deleted

    def test_inventory_defaults(self) -> None:
        """Inventory starts in stock with nothing reserved."""
        inventory = Inventory(quantity=4)
        assert inventory.reserved_quantity == 0
        assert inventory.low_stock_threshold is None
        assert inventory.stock_status == StockStatus.IN_STOCK


# ============================================================================
# Value Object Tests
# ============================================================================


class TestBulkPriceTier:
    """Tests for bulk price tiers."""

    def test_tiers_compare_by_value(self) -> None:
        """Tiers with equal values are equal."""
        assert BulkPriceTier(quantity=5, price=70.0) == BulkPriceTier(quantity=5, price=70.0)

    def test_tier_is_immutable(self) -> None:
        """Tiers cannot be modified."""
        tier = BulkPriceTier(quantity=5, price=70.0)
        with pytest.raises(FrozenInstanceError):
            tier.price = 1.0  # type: ignore[misc]


class TestCustomerType:
    """Tests for customer discount rates."""

    @pytest.mark.parametrize(
        ("customer_type", "rate"),
        [
            (CustomerType.RETAIL, Decimal("0")),
            (CustomerType.WHOLESALE, Decimal("0.10")),
            (CustomerType.VIP, Decimal("0.05")),
        ],
    )
    def test_discount_rates(self, customer_type: CustomerType, rate: Decimal) -> None:
        """Each customer type has a flat discount rate."""
        assert customer_type.discount_rate == rate

    def test_lookup_by_value(self) -> None:
        """Customer types can be resolved from their string value."""
        assert CustomerType("wholesale") is CustomerType.WHOLESALE


class TestRoundMoney:
    """Tests for cent rounding."""

    def test_rounds_half_up(self) -> None:
        """Half cents round away from zero."""
        assert round_money(Decimal("2.675")) == 2.68
        assert round_money(Decimal("0.125")) == 0.13

    def test_accepts_float(self) -> None:
        """Floats are rounded through their decimal representation."""
        assert round_money(2.675) == 2.68
        assert round_money(110.0) == 110.0
