"""Domain layer - Entities, value objects and domain exceptions.

This module exports the core building blocks of the catalog:

- **Entities**: Objects with identity (Category, Variation)
- **Value Objects**: Immutable pricing rules (BulkPriceTier) and enums
- **Exceptions**: Domain-specific errors and invariant violations

Example usage:
    from storefront.domain import Inventory, Pricing, Variation

    variation = Variation(
        product_id="prod-1",
        sku="TSHIRT-RED-M",
        pricing=Pricing(base_price=100.0, tax_rate=10.0),
        inventory=Inventory(quantity=10),
    )
"""

from storefront.domain.base import Entity, ValueObject, new_id, utc_now
from storefront.domain.entities import (
    Category,
    ColorAttribute,
    CustomerBehavior,
    Engagement,
    Inventory,
    Performance,
    Pricing,
    SalesStats,
    SearchOptimization,
    SeoMetadata,
    SizeAttribute,
    Variation,
    VariationAnalytics,
    VariationAttributes,
    VariationSeo,
)
from storefront.domain.exceptions import (
    CategoryCycleError,
    CategoryError,
    CategoryHasChildrenError,
    CategoryNotFoundError,
    DomainError,
    InvalidQuantityError,
    NotFoundError,
    ValidationError,
    VariationError,
    VariationNotFoundError,
)
from storefront.domain.value_objects import (
    BulkPriceTier,
    CustomerType,
    StockStatus,
    round_money,
)

__all__ = [
    # Base
    "Entity",
    "ValueObject",
    "new_id",
    "utc_now",
    # Entities
    "Category",
    "ColorAttribute",
    "CustomerBehavior",
    "Engagement",
    "Inventory",
    "Performance",
    "Pricing",
    "SalesStats",
    "SearchOptimization",
    "SeoMetadata",
    "SizeAttribute",
    "Variation",
    "VariationAnalytics",
    "VariationAttributes",
    "VariationSeo",
    # Value objects
    "BulkPriceTier",
    "CustomerType",
    "StockStatus",
    "round_money",
    # Exceptions
    "CategoryCycleError",
    "CategoryError",
    "CategoryHasChildrenError",
    "CategoryNotFoundError",
    "DomainError",
    "InvalidQuantityError",
    "NotFoundError",
    "ValidationError",
    "VariationError",
    "VariationNotFoundError",
]
