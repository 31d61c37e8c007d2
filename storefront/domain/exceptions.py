"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by the catalog services when invariants
are violated or invalid operations are attempted. Storage errors are
never wrapped in these types.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Base class for lookups that must resolve but did not."""

    pass


class ValidationError(DomainError):
    """Base class for malformed input to catalog operations."""

    pass


# ============================================================================
# Category Errors
# ============================================================================


class CategoryError(DomainError):
    """Base class for category-related errors."""

    pass


class CategoryNotFoundError(CategoryError, NotFoundError):
    """Raised when a category (or a proposed parent) does not exist."""

    def __init__(self, category_id: str, role: str = "category") -> None:
        """Initialize category not found error.

        Args:
            category_id: ID that failed to resolve.
            role: What the ID was used as ("category" or "parent").
        """
        label = "Parent category" if role == "parent" else "Category"
        super().__init__(
            f"{label} {category_id} not found",
            details={"category_id": category_id, "role": role},
        )


class CategoryCycleError(CategoryError):
    """Raised when a move would make a category its own ancestor."""

    def __init__(self, category_id: str, new_parent_id: str) -> None:
        """Initialize category cycle error.

        Args:
            category_id: Category being moved.
            new_parent_id: Rejected parent target.
        """
        super().__init__(
            f"Cannot move category {category_id} under {new_parent_id}: "
            "target is the category itself or one of its descendants",
            details={"category_id": category_id, "new_parent_id": new_parent_id},
        )


class CategoryHasChildrenError(CategoryError):
    """Raised when deleting a category that still has subcategories."""

    def __init__(self, category_id: str, children_count: int) -> None:
        """Initialize category has children error.

        Args:
            category_id: Category that was to be deleted.
            children_count: Number of remaining non-deleted children.
        """
        super().__init__(
            f"Cannot delete category {category_id} with {children_count} subcategories. "
            "Delete or move subcategories first.",
            details={"category_id": category_id, "children_count": children_count},
        )


# ============================================================================
# Variation Errors
# ============================================================================


class VariationError(DomainError):
    """Base class for variation-related errors."""

    pass


class VariationNotFoundError(VariationError, NotFoundError):
    """Raised when a variation lookup by id does not resolve."""

    def __init__(self, variation_id: str) -> None:
        """Initialize variation not found error.

        Args:
            variation_id: ID that failed to resolve.
        """
        super().__init__(
            f"Variation {variation_id} not found",
            details={"variation_id": variation_id},
        )


class InvalidQuantityError(VariationError, ValidationError):
    """Raised when an invalid quantity is provided."""

    def __init__(self, quantity: object, reason: str = "Quantity must be a positive integer") -> None:
        """Initialize invalid quantity error.

        Args:
            quantity: The invalid quantity value.
            reason: Explanation of why the quantity is invalid.
        """
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )
