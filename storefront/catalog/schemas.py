"""Response schemas for catalog projections.

Pydantic models for the shapes handed to API consumers. Field names are
snake_case in Python and camelCase on the wire.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VariationSummaryAnalytics(BaseModel):
    """Analytics block of a variation summary."""

    model_config = ConfigDict(populate_by_name=True)

    popularity_score: float = Field(..., alias="popularityScore", description="0-100 popularity")
    total_sold: int = Field(default=0, alias="totalSold", description="Units sold")
    average_rating: float | None = Field(
        default=None, alias="averageRating", description="Average review rating"
    )
    review_count: int = Field(default=0, alias="reviewCount", description="Number of reviews")


class VariationSummary(BaseModel):
    """Flat variation projection used by order pricing and catalog display.

    ``discount_percentage`` is only set while the variation is on sale and
    ``analytics`` only when requested and available.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Variation ID")
    sku: str = Field(..., description="Stock Keeping Unit")
    display_name: str = Field(..., alias="displayName", description="Human readable name")
    price: float = Field(..., description="Final unit price with tax and discounts")
    original_price: float | None = Field(
        default=None, alias="originalPrice", description="Base price before discounts"
    )
    is_on_sale: bool = Field(..., alias="isOnSale", description="Whether a sale is active")
    in_stock: bool = Field(..., alias="inStock", description="Whether one unit is available")
    available_quantity: int = Field(
        ..., alias="availableQuantity", description="Units available for purchase"
    )
    attributes: dict[str, Any] = Field(default_factory=dict, description="Variation attributes")
    discount_percentage: int | None = Field(
        default=None, alias="discountPercentage", description="Sale discount in percent"
    )
    analytics: VariationSummaryAnalytics | None = Field(
        default=None, description="Analytics block"
    )

    def to_response(self) -> dict[str, Any]:
        """Serialize with camelCase keys, leaving out unset optional blocks."""
        return self.model_dump(by_alias=True, exclude_none=True)
