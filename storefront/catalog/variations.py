"""Variation lookup and inventory service.

Handles the variation write path (inventory normalization before every
persist), catalog lookups and stock reservations.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from storefront.catalog import pricing
from storefront.catalog.repository import ASCENDING, DESCENDING, DocumentRepository, Filter, Sort
from storefront.domain.entities import Variation
from storefront.domain.exceptions import VariationNotFoundError
from storefront.domain.value_objects import StockStatus
from storefront.infrastructure.config import settings

logger = structlog.get_logger()

NOT_DELETED: dict[str, Any] = {"is_deleted": {"$ne": True}}

# Nested field first, legacy field as tie-breaker.
_SORT_FIELDS: dict[str, list[str]] = {
    "price": ["pricing.base_price", "price"],
    "stock": ["inventory.quantity", "quantity"],
    "popularity": ["analytics.performance.popularity_score"],
    "name": ["attributes.color.name", "color"],
}

NEWEST_FIRST: Sort = [("created_at", DESCENDING)]


def prepare_inventory(variation: Variation) -> Variation:
    """Normalize nested inventory before a variation is persisted.

    Clamps ``reserved_quantity`` into ``[0, quantity]`` and ``reorder_point``
    to zero or more, fills in the low stock threshold and derives
    ``stock_status`` from the on-hand quantity. A soft-deleted variation
    stays discontinued. Variations without nested inventory are untouched.

    Args:
        variation: Variation to update in place.

    Returns:
        The same variation.
    """
    inventory = variation.inventory
    if inventory is None:
        return variation

    if inventory.low_stock_threshold is None:
        inventory.low_stock_threshold = settings.default_low_stock_threshold

    if inventory.reorder_point is not None and inventory.reorder_point < 0:
        inventory.reorder_point = 0

    inventory.reserved_quantity = max(0, inventory.reserved_quantity or 0)
    if inventory.reserved_quantity > inventory.quantity:
        inventory.reserved_quantity = max(0, inventory.quantity)

    if variation.is_deleted and inventory.stock_status == StockStatus.DISCONTINUED:
        return variation

    if inventory.quantity <= 0:
        inventory.stock_status = StockStatus.OUT_OF_STOCK
    elif inventory.quantity <= inventory.low_stock_threshold:
        inventory.stock_status = StockStatus.LOW_STOCK
    else:
        inventory.stock_status = StockStatus.IN_STOCK
    return variation


def _base_price(variation: Variation) -> float | None:
    """Nested base price, falling back to the legacy flat price."""
    return (variation.pricing.base_price if variation.pricing else None) or variation.price


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class PriceRange:
    """Price bounds over the live variations of a product.

    Base prices fall back to the legacy flat price; sale bounds are None
    when no variation has a sale price.
    """

    min_price: float | None
    max_price: float | None
    min_sale_price: float | None = None
    max_sale_price: float | None = None


# ============================================================================
# Variation Service
# ============================================================================


class VariationService:
    """Service for variation lookups and inventory reservations.

    Example usage:
        service = VariationService(InMemoryDocumentRepository(Variation))
        await service.save(variation)
        await service.reserve_inventory(variation.id, 2)
    """

    def __init__(
        self,
        repository: DocumentRepository[Variation],
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Variation document repository.
            request_id: Request ID for correlation.
        """
        self.repository = repository
        self.request_id = request_id

    async def save(self, variation: Variation) -> Variation:
        """Normalize inventory, stamp and persist a variation."""
        prepare_inventory(variation)
        variation.touch()
        return await self.repository.save(variation)

    async def get(self, variation_id: str) -> Variation:
        """Get a variation by ID.

        Raises:
            VariationNotFoundError: If no variation has this ID.
        """
        variation = await self.repository.find_by_id(variation_id)
        if variation is None:
            logger.warning(
                "Variation not found",
                variation_id=variation_id,
                request_id=self.request_id,
            )
            raise VariationNotFoundError(variation_id)
        return variation

    async def find_by_sku(self, sku: str) -> Variation | None:
        """Find a live variation by SKU."""
        return await self.repository.find_one({"sku": sku, **NOT_DELETED})

    async def find_by_product(
        self,
        product_id: str,
        *,
        include_deleted: bool = False,
        sort_by: str | None = "price",
        sort_order: str = "asc",
    ) -> list[Variation]:
        """List the variations of a product.

        Args:
            product_id: Owning product.
            include_deleted: Whether soft-deleted variations are included.
            sort_by: "price", "stock", "popularity" or "name"; any other
                value lists the newest variations first.
            sort_order: "asc" or "desc".

        Returns:
            Matching variations in the requested order.
        """
        query: dict[str, Any] = {"product_id": product_id}
        if not include_deleted:
            query.update(NOT_DELETED)

        fields = _SORT_FIELDS.get(sort_by or "")
        if fields is None:
            sort = NEWEST_FIRST
        else:
            direction = DESCENDING if sort_order == "desc" else ASCENDING
            sort = [(name, direction) for name in fields]

        return await self.repository.find(query, sort=sort)

    async def get_low_stock_variations(self, threshold: int | None = None) -> list[Variation]:
        """Live variations whose nested or legacy quantity is at or below threshold."""
        limit = threshold if threshold is not None else settings.low_stock_query_threshold
        query: Filter = {
            **NOT_DELETED,
            "$or": [
                {"inventory.quantity": {"$lte": limit}},
                {"quantity": {"$lte": limit}},
            ],
        }
        return await self.repository.find(query)

    async def get_reorder_variations(self) -> list[Variation]:
        """Live variations whose stock is at or below their reorder point."""
        candidates = await self.repository.find({**NOT_DELETED, "inventory": {"$exists": True}})
        return [v for v in candidates if pricing.needs_reorder(v)]

    async def get_on_sale_variations(self) -> list[Variation]:
        """Live variations with an active sale."""
        candidates = await self.repository.find(
            {**NOT_DELETED, "pricing.sale_price": {"$exists": True}}
        )
        return [v for v in candidates if pricing.is_on_sale(v)]

    async def get_price_range(self, product_id: str) -> PriceRange | None:
        """Price bounds over the live variations of a product.

        Returns:
            PriceRange, or None when the product has no live variations.
        """
        variations = await self.repository.find({"product_id": product_id, **NOT_DELETED})
        if not variations:
            return None

        base_prices = [price for v in variations if (price := _base_price(v)) is not None]
        sale_prices = [
            v.pricing.sale_price
            for v in variations
            if v.pricing is not None and v.pricing.sale_price is not None
        ]

        return PriceRange(
            min_price=min(base_prices) if base_prices else None,
            max_price=max(base_prices) if base_prices else None,
            min_sale_price=min(sale_prices) if sale_prices else None,
            max_sale_price=max(sale_prices) if sale_prices else None,
        )

    async def get_top_selling(self, limit: int = 10) -> list[Variation]:
        """Live variations with the most units sold, best sellers first."""
        return await self.repository.find(
            NOT_DELETED,
            sort=[("analytics.sales.total_sold", DESCENDING)],
            limit=limit,
        )

    async def search_variations(
        self,
        search_term: str | None = None,
        *,
        min_price: float | None = None,
        max_price: float | None = None,
        in_stock_only: bool = False,
        on_sale_only: bool = False,
        limit: int = 50,
    ) -> list[Variation]:
        """Search live variations, most popular first.

        Args:
            search_term: Case-insensitive text matched against SKU,
                attributes and SEO terms. Empty matches everything.
            min_price: Lowest base price, inclusive.
            max_price: Highest base price, inclusive.
            in_stock_only: Skip variations with no available units.
            on_sale_only: Skip variations without an active sale.
            limit: Maximum number of results.

        Returns:
            Matches ordered by popularity, then newest first.
        """
        candidates = await self.repository.find(NOT_DELETED, sort=NEWEST_FIRST)

        results = []
        for variation in candidates:
            if search_term and not pricing.matches_search(variation, search_term):
                continue
            if min_price is not None or max_price is not None:
                price = _base_price(variation)
                if price is None:
                    continue
                if min_price is not None and price < min_price:
                    continue
                if max_price is not None and price > max_price:
                    continue
            if in_stock_only and pricing.get_available_quantity(variation) <= 0:
                continue
            if on_sale_only and not pricing.is_on_sale(variation):
                continue
            results.append(variation)

        # Stable sort keeps newest first among equal scores.
        results.sort(key=pricing.get_popularity_score, reverse=True)
        return results[:limit]

    # ========================================================================
    # Reservations
    # ========================================================================

    async def reserve_inventory(self, variation_id: str, quantity: int) -> bool:
        """Hold stock for a pending order.

        Args:
            variation_id: Variation to reserve from.
            quantity: Units to hold.

        Returns:
            True if the units were reserved, False when the variation is
            missing, deleted, untracked or short of available stock.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer.
        """
        pricing.validate_quantity(quantity)
        variation = await self._find_tracked(variation_id)
        if variation is None:
            return False
        if pricing.get_available_quantity(variation) < quantity:
            logger.info(
                "Reservation refused",
                variation_id=variation_id,
                requested=quantity,
                available=pricing.get_available_quantity(variation),
                request_id=self.request_id,
            )
            return False

        variation.inventory.reserved_quantity += quantity
        await self.save(variation)

        logger.info(
            "Inventory reserved",
            variation_id=variation_id,
            quantity=quantity,
            reserved=variation.inventory.reserved_quantity,
            request_id=self.request_id,
        )
        return True

    async def release_reserved_inventory(self, variation_id: str, quantity: int) -> bool:
        """Return held stock after an order is cancelled.

        Args:
            variation_id: Variation to release on.
            quantity: Units to release.

        Returns:
            True if the units were released, False when the variation is
            missing, deleted, untracked or holds fewer reserved units.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer.
        """
        pricing.validate_quantity(quantity)
        variation = await self._find_tracked(variation_id)
        if variation is None:
            return False
        if variation.inventory.reserved_quantity < quantity:
            return False

        variation.inventory.reserved_quantity -= quantity
        await self.save(variation)

        logger.info(
            "Reserved inventory released",
            variation_id=variation_id,
            quantity=quantity,
            reserved=variation.inventory.reserved_quantity,
            request_id=self.request_id,
        )
        return True

    # ========================================================================
    # Stock Movements
    # ========================================================================

    async def reduce_inventory(self, variation_id: str, quantity: int) -> bool:
        """Ship units, taking them out of both on-hand and reserved stock.

        Args:
            variation_id: Variation that was sold.
            quantity: Units shipped.

        Returns:
            True if stock was reduced, False when the variation is missing,
            deleted, untracked or holds fewer units on hand.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer.
        """
        pricing.validate_quantity(quantity)
        variation = await self._find_tracked(variation_id)
        if variation is None:
            return False
        if variation.inventory.quantity < quantity:
            logger.info(
                "Inventory reduction refused",
                variation_id=variation_id,
                requested=quantity,
                on_hand=variation.inventory.quantity,
                request_id=self.request_id,
            )
            return False

        variation.inventory.quantity -= quantity
        variation.inventory.reserved_quantity -= quantity
        await self.save(variation)

        logger.info(
            "Inventory reduced",
            variation_id=variation_id,
            quantity=quantity,
            remaining=variation.inventory.quantity,
            request_id=self.request_id,
        )
        return True

    async def restock_inventory(self, variation_id: str, quantity: int) -> bool:
        """Add received units to on-hand stock.

        Returns:
            True if stock was added, False when the variation is missing,
            deleted or untracked.

        Raises:
            InvalidQuantityError: If quantity is not a positive integer.
        """
        pricing.validate_quantity(quantity)
        variation = await self._find_tracked(variation_id)
        if variation is None:
            return False

        variation.inventory.quantity += quantity
        await self.save(variation)

        logger.info(
            "Inventory restocked",
            variation_id=variation_id,
            quantity=quantity,
            on_hand=variation.inventory.quantity,
            request_id=self.request_id,
        )
        return True

    async def _find_tracked(self, variation_id: str) -> Variation | None:
        """Load a live variation whose inventory is tracked."""
        variation = await self.repository.find_by_id(variation_id)
        if variation is None or variation.is_deleted or variation.inventory is None:
            return None
        if not variation.inventory.track_inventory:
            return None
        return variation
