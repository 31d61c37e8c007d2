"""Variation pricing and inventory engine.

Pure functions over a single ``Variation``:

- Final price from layered rules (base, sale, bulk tiers, customer
  discount, tax)
- Stock availability and reorder checks
- Sale, discount and margin figures
- Display projections (name, attributes, slug, search, popularity, summary)

Nested ``pricing``/``inventory``/``attributes`` values take precedence over
the legacy flat fields, which are only read as a fallback.

``soft_delete`` and ``restore`` are the only functions that persist.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from storefront.catalog.repository import DocumentRepository
from storefront.catalog.schemas import VariationSummary, VariationSummaryAnalytics
from storefront.catalog.slugs import slugify
from storefront.domain.base import utc_now
from storefront.domain.entities import Variation
from storefront.domain.exceptions import InvalidQuantityError, ValidationError
from storefront.domain.value_objects import CustomerType, StockStatus, round_money

logger = structlog.get_logger()

DEFAULT_DISPLAY_NAME = "Default Variation"


def _to_decimal(value: float | int) -> Decimal:
    return Decimal(str(value))


def _round_int(value: Decimal | float) -> int:
    amount = value if isinstance(value, Decimal) else _to_decimal(value)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def validate_quantity(quantity: Any) -> int:
    """Check that a requested quantity is a positive integer.

    Raises:
        InvalidQuantityError: For zero, negative or non-integer values.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(quantity, reason="Quantity must be an integer")
    if quantity < 1:
        raise InvalidQuantityError(quantity)
    return quantity


def _customer_type(value: CustomerType | str) -> CustomerType:
    try:
        return CustomerType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown customer type {value!r}",
            details={"customer_type": value, "allowed": [c.value for c in CustomerType]},
        ) from None


# ============================================================================
# Pricing
# ============================================================================


def calculate_final_price(
    variation: Variation,
    quantity: int = 1,
    *,
    include_tax: bool = True,
    apply_discounts: bool = True,
    customer_type: CustomerType | str = CustomerType.RETAIL,
) -> float:
    """Calculate the unit price a customer pays.

    Rules are applied in order:
    1. Base price (legacy ``price`` as fallback); 0 when neither is set.
    2. Sale price, when discounts apply and the sale flag is set.
    3. Bulk tier with the highest threshold <= quantity, when quantity > 1.
       A matching tier replaces the sale price.
    4. Customer discount (wholesale 10%, vip 5%), when discounts apply.
    5. Tax, when requested and a tax rate is set.

    Args:
        variation: Variation to price.
        quantity: Units being bought.
        include_tax: Whether to add tax.
        apply_discounts: Whether sale and customer discounts apply.
        customer_type: Customer class.

    Returns:
        Unit price rounded half-up to cents.

    Raises:
        InvalidQuantityError: If quantity is not a positive integer.
        ValidationError: If the customer type is unknown.
    """
    validate_quantity(quantity)
    customer = _customer_type(customer_type)
    pricing = variation.pricing

    base = (pricing.base_price if pricing else None) or variation.price or 0
    if not base:
        return 0.0
    price = _to_decimal(base)

    if apply_discounts and pricing and pricing.is_on_sale and pricing.sale_price:
        price = _to_decimal(pricing.sale_price)

    if pricing and pricing.bulk_pricing and quantity > 1:
        applicable = [tier for tier in pricing.bulk_pricing if quantity >= tier.quantity]
        if applicable:
            tier = max(applicable, key=lambda t: t.quantity)
            price = _to_decimal(tier.price)

    if apply_discounts and customer is not CustomerType.RETAIL:
        price = price * (1 - customer.discount_rate)

    if include_tax and pricing and pricing.tax_rate:
        price += price * _to_decimal(pricing.tax_rate) / 100

    return round_money(price)


def is_on_sale(variation: Variation, now: datetime | None = None) -> bool:
    """Check whether a sale is currently active.

    A sale window, when both ends are set, decides on its own. Otherwise
    the sale is active when the sale price undercuts the base price.
    An explicit ``is_on_sale=False`` always wins.

    Args:
        variation: Variation to check.
        now: Reference time, defaults to the current UTC time.
    """
    pricing = variation.pricing
    if pricing is None or not pricing.sale_price:
        return False
    if pricing.is_on_sale is False:
        return False

    if pricing.sale_start_date and pricing.sale_end_date:
        moment = _as_utc(now or utc_now())
        return _as_utc(pricing.sale_start_date) <= moment <= _as_utc(pricing.sale_end_date)

    return pricing.base_price is not None and pricing.sale_price < pricing.base_price


def get_discount_percentage(variation: Variation, now: datetime | None = None) -> int:
    """Sale discount relative to the base price, in whole percent."""
    pricing = variation.pricing
    if not is_on_sale(variation, now) or pricing is None or not pricing.sale_price:
        return 0
    if not pricing.base_price:
        return 0

    base = _to_decimal(pricing.base_price)
    return _round_int((base - _to_decimal(pricing.sale_price)) / base * 100)


def get_profit_margin(variation: Variation) -> int:
    """Margin against the selling price, in whole percent (0 without cost data)."""
    pricing = variation.pricing
    if pricing is None or not pricing.cost_price or not pricing.base_price:
        return 0
    if pricing.cost_price <= 0:
        return 0

    selling = _to_decimal(pricing.base_price)
    return _round_int((selling - _to_decimal(pricing.cost_price)) / selling * 100)


# ============================================================================
# Inventory
# ============================================================================


def _available(variation: Variation) -> int:
    inventory = variation.inventory
    if inventory is None:
        return variation.quantity or 0
    return inventory.quantity - (inventory.reserved_quantity or 0)


def is_in_stock(variation: Variation, requested_quantity: int = 1) -> bool:
    """Check whether the requested quantity can be sold now.

    Raises:
        InvalidQuantityError: If requested_quantity is not a positive integer.
    """
    validate_quantity(requested_quantity)
    return _available(variation) >= requested_quantity


def get_available_quantity(variation: Variation) -> int:
    """Units available for purchase, never negative."""
    return max(0, _available(variation))


def needs_reorder(variation: Variation) -> bool:
    """Check whether on-hand stock is at or below the reorder point."""
    inventory = variation.inventory
    if inventory is None:
        return False
    return inventory.quantity <= (inventory.reorder_point or 0)


# ============================================================================
# Projections
# ============================================================================


def _color_name(variation: Variation) -> str | None:
    attributes = variation.attributes
    nested = attributes.color.name if attributes and attributes.color else None
    return nested or variation.color


def _size_value(variation: Variation) -> str | None:
    attributes = variation.attributes
    nested = attributes.size.value if attributes and attributes.size else None
    return nested or variation.size


def _storage(variation: Variation) -> str | None:
    attributes = variation.attributes
    nested = (attributes.technical or {}).get("storage") if attributes else None
    return nested or variation.storage


def get_display_name(variation: Variation) -> str:
    """Join color, size and storage, e.g. "Red - XL - 256GB"."""
    parts = [p for p in (_color_name(variation), _size_value(variation), _storage(variation)) if p]
    return " - ".join(parts) if parts else DEFAULT_DISPLAY_NAME


def get_url_slug(variation: Variation) -> str:
    """SEO slug, generated from the display name when none is stored."""
    seo = variation.seo
    if seo and seo.metadata and seo.metadata.slug:
        return seo.metadata.slug
    return slugify(get_display_name(variation))


def get_attributes(variation: Variation) -> dict[str, Any]:
    """Collect attributes, structured values replacing legacy ones per key."""
    result: dict[str, Any] = {}

    if variation.color:
        result["color"] = variation.color
    if variation.size:
        result["size"] = variation.size
    if variation.storage:
        result["storage"] = variation.storage

    attributes = variation.attributes
    if attributes is None:
        return result

    if attributes.color:
        result["color"] = {
            "name": attributes.color.name,
            "code": attributes.color.code,
            "family": attributes.color.family,
        }
    if attributes.size:
        result["size"] = {
            "value": attributes.size.value,
            "type": attributes.size.type,
            "measurements": dict(attributes.size.measurements),
        }
    if attributes.material:
        result["material"] = dict(attributes.material)
    if attributes.technical:
        result["technical"] = dict(attributes.technical)
    return result


def _search_fields(variation: Variation) -> list[str | None]:
    attributes = variation.attributes
    fields: list[str | None] = [
        variation.sku,
        attributes.color.name if attributes and attributes.color else None,
        variation.color,
        attributes.size.value if attributes and attributes.size else None,
        variation.size,
        (attributes.technical or {}).get("storage") if attributes else None,
        variation.storage,
    ]

    seo = variation.seo
    if seo and seo.metadata:
        fields.extend(seo.metadata.keywords)
    if seo and seo.search_optimization:
        terms = seo.search_optimization
        fields.extend([*terms.search_keywords, *terms.synonyms, *terms.auto_suggest_terms])
    return fields


def matches_search(variation: Variation, search_term: str) -> bool:
    """Case-insensitive substring match over identifying fields and SEO terms."""
    term = search_term.lower()
    return any(
        isinstance(value, str) and term in value.lower()
        for value in _search_fields(variation)
    )


def get_popularity_score(variation: Variation) -> float:
    """Stored popularity score, or one estimated from engagement and sales.

    The estimate caps each signal (views 30, cart adds 20, wishlist 15,
    units sold 25, revenue 10) and the total at 100.
    """
    analytics = variation.analytics
    if analytics and analytics.performance and analytics.performance.popularity_score is not None:
        return float(analytics.performance.popularity_score)

    score = 0.0
    if analytics and analytics.engagement:
        engagement = analytics.engagement
        score += min(engagement.views / 100, 30)
        score += min(engagement.add_to_cart_count * 2, 20)
        score += min(engagement.wishlist_count * 3, 15)
    if analytics and analytics.sales:
        score += min(analytics.sales.total_sold / 10, 25)
        score += min(analytics.sales.total_revenue / 1000, 10)

    return float(min(_round_int(score), 100))


def get_summary(variation: Variation, include_analytics: bool = False) -> VariationSummary:
    """Build the flat projection used in API responses.

    Args:
        variation: Variation to summarize.
        include_analytics: Whether to add the analytics block.

    Returns:
        VariationSummary; ``to_response()`` gives the wire shape.
    """
    on_sale = is_on_sale(variation)
    summary = VariationSummary(
        id=variation.id,
        sku=variation.sku,
        display_name=get_display_name(variation),
        price=calculate_final_price(variation),
        original_price=(variation.pricing.base_price if variation.pricing else None)
        or variation.price,
        is_on_sale=on_sale,
        in_stock=is_in_stock(variation),
        available_quantity=get_available_quantity(variation),
        attributes=get_attributes(variation),
    )

    if on_sale:
        summary.discount_percentage = get_discount_percentage(variation)

    analytics = variation.analytics
    if include_analytics and analytics is not None:
        summary.analytics = VariationSummaryAnalytics(
            popularity_score=get_popularity_score(variation),
            total_sold=analytics.sales.total_sold if analytics.sales else 0,
            average_rating=(
                analytics.customer_behavior.average_rating
                if analytics.customer_behavior
                else None
            ),
            review_count=(
                analytics.customer_behavior.review_count if analytics.customer_behavior else 0
            ),
        )

    return summary


# ============================================================================
# Soft delete
# ============================================================================


async def soft_delete(
    repository: DocumentRepository[Variation],
    variation: Variation,
    reason: str | None = None,
) -> Variation:
    """Mark a variation deleted and discontinue its stock.

    Args:
        repository: Variation repository.
        variation: Variation to delete.
        reason: Optional deletion reason.

    Returns:
        The saved variation.
    """
    variation.is_deleted = True
    variation.deleted_at = utc_now()
    variation.deletion_reason = reason
    if variation.inventory is not None:
        variation.inventory.stock_status = StockStatus.DISCONTINUED

    variation.touch()
    await repository.save(variation)

    logger.info(
        "Variation soft-deleted",
        variation_id=variation.id,
        sku=variation.sku,
        reason=reason,
    )
    return variation


async def restore(
    repository: DocumentRepository[Variation],
    variation: Variation,
) -> Variation:
    """Undo a soft delete, deriving stock status from the remaining quantity.

    Args:
        repository: Variation repository.
        variation: Variation to restore.

    Returns:
        The saved variation.
    """
    variation.is_deleted = False
    variation.deleted_at = None
    variation.deletion_reason = None
    if variation.inventory is not None:
        variation.inventory.stock_status = (
            StockStatus.IN_STOCK if variation.inventory.quantity > 0 else StockStatus.OUT_OF_STOCK
        )

    variation.touch()
    await repository.save(variation)

    logger.info("Variation restored", variation_id=variation.id, sku=variation.sku)
    return variation
