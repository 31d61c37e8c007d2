"""Domain entities.

Category and Variation documents with their nested sub-structures.
Entities are plain dataclasses; behaviour that needs storage lives in the
catalog services, behaviour that does not lives in ``storefront.catalog.pricing``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storefront.domain.base import Entity
from storefront.domain.value_objects import BulkPriceTier, StockStatus


# ============================================================================
# Category
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Category(Entity):
    """A node in the category tree.

    ``ancestors``, ``level``, ``path`` and ``materialized_path`` are derived
    from ``parent`` by the hierarchy service and must not be set by callers.

    Attributes:
        name: Display name.
        slug: URL slug (unique).
        description: Optional long description.
        parent: ID of the parent category, None for roots.
        ancestors: Ancestor IDs ordered root to immediate parent.
        level: Depth in the tree (root = 0).
        path: Human readable path (e.g., "Electronics > Computers").
        materialized_path: Ancestor IDs as "/root/child/" ("/" for roots).
        order: Sort key among siblings.
        is_active: Whether the category is shown.
        is_deleted: Soft-delete flag.
    """

    name: str
    slug: str = ""
    description: str | None = None
    parent: str | None = None
    ancestors: list[str] = field(default_factory=list)
    level: int = 0
    path: str = ""
    materialized_path: str = "/"
    order: int | None = None
    is_active: bool = True
    is_deleted: bool = False

    @property
    def is_root(self) -> bool:
        """Whether the category has no parent."""
        return self.parent is None

    def breadcrumb_entry(self) -> dict[str, Any]:
        """Project to the record used in breadcrumb paths."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "level": self.level,
        }


# ============================================================================
# Variation sub-structures
# ============================================================================


@dataclass
class Pricing:
    """Nested pricing rules of a variation.

    Attributes:
        base_price: Regular selling price.
        sale_price: Promotional price.
        is_on_sale: Explicit sale flag (None when never set).
        sale_start_date: Start of the sale window.
        sale_end_date: End of the sale window.
        tax_rate: Tax rate in percent.
        cost_price: Purchase cost, used for margin.
        bulk_pricing: Quantity price tiers.
    """

    base_price: float | None = None
    sale_price: float | None = None
    is_on_sale: bool | None = None
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    tax_rate: float | None = None
    cost_price: float | None = None
    bulk_pricing: list[BulkPriceTier] = field(default_factory=list)


@dataclass
class Inventory:
    """Nested inventory state of a variation.

    Attributes:
        quantity: Units on hand.
        reserved_quantity: Units held for pending orders.
        reorder_point: Quantity at or below which stock should be reordered.
        low_stock_threshold: Quantity at or below which stock is "low"
            (the configured default when None).
        track_inventory: Whether stock levels are tracked at all.
        stock_status: Derived status, "discontinued" after a soft delete.
    """

    quantity: int = 0
    reserved_quantity: int = 0
    reorder_point: int | None = None
    low_stock_threshold: int | None = None
    track_inventory: bool = True
    stock_status: StockStatus = StockStatus.IN_STOCK


@dataclass
class ColorAttribute:
    """Color of a variation."""

    name: str | None = None
    code: str | None = None
    family: str | None = None


@dataclass
class SizeAttribute:
    """Size of a variation."""

    value: str | None = None
    type: str | None = None
    measurements: dict[str, Any] = field(default_factory=dict)


@dataclass
class VariationAttributes:
    """Structured attributes of a variation.

    ``technical`` holds free-form specs such as ``{"storage": "256GB"}``.
    """

    color: ColorAttribute | None = None
    size: SizeAttribute | None = None
    material: dict[str, Any] | None = None
    technical: dict[str, Any] | None = None


@dataclass
class SeoMetadata:
    """SEO metadata of a variation page."""

    slug: str | None = None
    title: str | None = None
    keywords: list[str] = field(default_factory=list)


@dataclass
class SearchOptimization:
    """Extra terms used when matching search queries."""

    search_keywords: list[str] = field(default_factory=list)
    synonyms: list[str] = field(default_factory=list)
    auto_suggest_terms: list[str] = field(default_factory=list)


@dataclass
class VariationSeo:
    """SEO data of a variation."""

    metadata: SeoMetadata | None = None
    search_optimization: SearchOptimization | None = None


@dataclass
class Engagement:
    views: int = 0
    add_to_cart_count: int = 0
    wishlist_count: int = 0


@dataclass
class SalesStats:
    total_sold: int = 0
    total_revenue: float = 0.0


@dataclass
class CustomerBehavior:
    average_rating: float | None = None
    review_count: int = 0


@dataclass
class Performance:
    popularity_score: float | None = None


@dataclass
class VariationAnalytics:
    """Analytics counters of a variation."""

    engagement: Engagement | None = None
    sales: SalesStats | None = None
    customer_behavior: CustomerBehavior | None = None
    performance: Performance | None = None


# ============================================================================
# Variation
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Variation(Entity):
    """A purchasable variant of a product.

    The flat ``color``/``size``/``storage``/``price``/``quantity`` fields are
    kept for older documents. When the nested ``pricing``/``inventory``/
    ``attributes`` structure is present it is authoritative and the legacy
    value is only read as a fallback.

    Attributes:
        product_id: Owning product.
        sku: Stock Keeping Unit (unique).
        is_deleted: Soft-delete flag.
        deleted_at: When the variation was soft-deleted.
        deletion_reason: Optional reason recorded on soft delete.
    """

    product_id: str
    sku: str

    # Legacy flat fields
    color: str | None = None
    size: str | None = None
    storage: str | None = None
    price: float | None = None
    quantity: int | None = None

    pricing: Pricing | None = None
    inventory: Inventory | None = None
    attributes: VariationAttributes | None = None
    seo: VariationSeo | None = None
    analytics: VariationAnalytics | None = None

    is_deleted: bool = False
    deleted_at: datetime | None = None
    deletion_reason: str | None = None
