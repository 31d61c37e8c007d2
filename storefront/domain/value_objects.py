"""Value objects for the domain layer.

Immutable pricing rules and the enumerations shared by the pricing and
inventory code.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from storefront.domain.base import ValueObject


class StockStatus(str, Enum):
    """Inventory status of a variation.

    DISCONTINUED is only ever set by a soft delete; the other values are
    derived from the on-hand quantity.
    """

    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class CustomerType(str, Enum):
    """Customer classes with their flat discount rates."""

    RETAIL = "retail"
    WHOLESALE = "wholesale"
    VIP = "vip"

    @property
    def discount_rate(self) -> Decimal:
        """Fraction taken off the unit price for this customer type."""
        return _CUSTOMER_DISCOUNTS[self]


_CUSTOMER_DISCOUNTS = {
    CustomerType.RETAIL: Decimal("0"),
    CustomerType.WHOLESALE: Decimal("0.10"),
    CustomerType.VIP: Decimal("0.05"),
}


@dataclass(frozen=True)
class BulkPriceTier(ValueObject):
    """Per-unit price that applies once the order quantity reaches a threshold.

    Attributes:
        quantity: Minimum quantity for the tier to apply.
        price: Unit price within the tier.
    """

    quantity: int
    price: float


def round_money(value: Decimal | float) -> float:
    """Round an amount to cents, half-up on the cent boundary.

    Args:
        value: Amount to round.

    Returns:
        Rounded amount as float.
    """
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
