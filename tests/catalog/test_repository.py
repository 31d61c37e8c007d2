"""Tests for filter evaluation and the in-memory document repository."""

import pytest

from storefront.catalog import ASCENDING, DESCENDING, InMemoryDocumentRepository, matches_filter
from storefront.catalog.repository import resolve_path, sort_documents
from storefront.domain import Category, Inventory, Variation


def make_document(**overrides: object) -> dict:
    """Create a stored variation-like document."""
    document = {
        "id": "v1",
        "sku": "SKU-1",
        "is_deleted": False,
        "tags": ["red", "sale"],
        "inventory": {"quantity": 4, "reserved_quantity": 1},
        "price": None,
    }
    document.update(overrides)
    return document


# ============================================================================
# Filter Tests
# ============================================================================


class TestResolvePath:
    """Tests for dotted path lookup."""

    def test_nested_value(self) -> None:
        """Dotted paths reach into nested documents."""
        assert resolve_path(make_document(), "inventory.quantity") == 4

    def test_missing_value_is_not_none(self) -> None:
        """A missing path is distinguishable from a stored None."""
        document = make_document()
        assert resolve_path(document, "price") is None
        assert resolve_path(document, "pricing.base_price") is not None


class TestMatchesFilter:
    """Tests for Mongo-style filter evaluation."""

    def test_empty_filter_matches(self) -> None:
        """No conditions match everything."""
        assert matches_filter(make_document(), None)
        assert matches_filter(make_document(), {})

    def test_equality(self) -> None:
        """Scalars compare by equality."""
        assert matches_filter(make_document(), {"sku": "SKU-1"})
        assert not matches_filter(make_document(), {"sku": "SKU-2"})

    def test_array_membership(self) -> None:
        """A scalar matches an array field containing it."""
        assert matches_filter(make_document(), {"tags": "sale"})
        assert not matches_filter(make_document(), {"tags": "blue"})

    def test_none_matches_missing_and_null(self) -> None:
        """None matches both missing and null values."""
        assert matches_filter(make_document(), {"price": None})
        assert matches_filter(make_document(), {"parent": None})
        assert not matches_filter(make_document(), {"sku": None})

    def test_in_and_nin(self) -> None:
        """$in and $nin test set membership."""
        assert matches_filter(make_document(), {"id": {"$in": ["v1", "v2"]}})
        assert not matches_filter(make_document(), {"id": {"$nin": ["v1"]}})

    def test_ne_matches_missing(self) -> None:
        """$ne holds for missing fields."""
        assert matches_filter(make_document(), {"archived": {"$ne": True}})
        assert not matches_filter(make_document(), {"is_deleted": {"$ne": False}})

    def test_comparisons(self) -> None:
        """Comparison operators need a present value."""
        assert matches_filter(make_document(), {"inventory.quantity": {"$lte": 4}})
        assert not matches_filter(make_document(), {"inventory.quantity": {"$lt": 4}})
        assert not matches_filter(make_document(), {"quantity": {"$lte": 100}})

    def test_exists(self) -> None:
        """$exists treats null as absent."""
        assert matches_filter(make_document(), {"inventory": {"$exists": True}})
        assert matches_filter(make_document(), {"price": {"$exists": False}})

    def test_or(self) -> None:
        """$or matches when any branch matches."""
        query = {"$or": [{"quantity": {"$lte": 5}}, {"inventory.quantity": {"$lte": 5}}]}
        assert matches_filter(make_document(), query)

    def test_unknown_operator(self) -> None:
        """Unsupported operators are rejected."""
        with pytest.raises(ValueError):
            matches_filter(make_document(), {"sku": {"$regex": "SKU"}})


class TestSortDocuments:
    """Tests for multi-key sorting."""

    def test_missing_values_sort_first(self) -> None:
        """Missing values come first ascending and last descending."""
        documents = [{"id": "a", "order": 2}, {"id": "b"}, {"id": "c", "order": 1}]

        ascending = sort_documents(documents, [("order", ASCENDING)])
        descending = sort_documents(documents, [("order", DESCENDING)])

        assert [d["id"] for d in ascending] == ["b", "c", "a"]
        assert [d["id"] for d in descending] == ["a", "c", "b"]

    def test_secondary_key(self) -> None:
        """Later keys break ties of earlier ones."""
        documents = [
            {"id": "a", "level": 1, "order": 2},
            {"id": "b", "level": 0, "order": 5},
            {"id": "c", "level": 1, "order": 1},
        ]
        ordered = sort_documents(documents, [("level", ASCENDING), ("order", ASCENDING)])
        assert [d["id"] for d in ordered] == ["b", "c", "a"]


# ============================================================================
# Repository Tests
# ============================================================================


class TestInMemoryDocumentRepository:
    """Tests for the in-memory repository."""

    @pytest.mark.asyncio
    async def test_save_and_find_by_id(self) -> None:
        """Saved entities can be read back."""
        repo = InMemoryDocumentRepository(Category)
        category = await repo.save(Category(name="Books", slug="books"))

        loaded = await repo.find_by_id(category.id)

        assert loaded == category
        assert loaded is not category
        assert loaded.slug == "books"

    @pytest.mark.asyncio
    async def test_reads_are_detached(self) -> None:
        """Changing a loaded entity does not change storage until saved."""
        repo = InMemoryDocumentRepository(Variation)
        variation = Variation(product_id="p-1", sku="SKU-1", inventory=Inventory(quantity=5))
        await repo.save(variation)

        loaded = await repo.find_by_id(variation.id)
        loaded.inventory.quantity = 0

        fresh = await repo.find_by_id(variation.id)
        assert fresh.inventory.quantity == 5

    @pytest.mark.asyncio
    async def test_save_replaces(self) -> None:
        """Saving an existing ID replaces the stored document."""
        repo = InMemoryDocumentRepository(Category)
        category = await repo.save(Category(name="Books"))
        category.name = "Novels"
        await repo.save(category)

        assert len(repo) == 1
        assert (await repo.find_by_id(category.id)).name == "Novels"

    @pytest.mark.asyncio
    async def test_find_sort_limit_count(self) -> None:
        """find honours filter, sort and limit; count honours filter."""
        repo = InMemoryDocumentRepository(Category)
        for name, order in [("B", 2), ("A", 1), ("C", 3)]:
            await repo.save(Category(name=name, order=order))
        await repo.save(Category(name="Hidden", order=0, is_active=False))

        found = await repo.find({"is_active": True}, sort=[("order", DESCENDING)], limit=2)

        assert [c.name for c in found] == ["C", "B"]
        assert await repo.count({"is_active": True}) == 3
        assert await repo.count() == 4

    @pytest.mark.asyncio
    async def test_find_one_and_missing(self) -> None:
        """find_one returns None when nothing matches."""
        repo = InMemoryDocumentRepository(Category)
        await repo.save(Category(name="Books", slug="books"))

        assert (await repo.find_one({"slug": "books"})).name == "Books"
        assert await repo.find_one({"slug": "music"}) is None
        assert await repo.find_by_id("missing") is None
