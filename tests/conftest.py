"""Shared fixtures for catalog tests."""

import pytest

from storefront.catalog import (
    CategoryHierarchyService,
    InMemoryDocumentRepository,
    VariationService,
)
from storefront.domain import Category, Variation


@pytest.fixture
def category_repository() -> InMemoryDocumentRepository[Category]:
    """Create an empty category repository."""
    return InMemoryDocumentRepository(Category)


@pytest.fixture
def variation_repository() -> InMemoryDocumentRepository[Variation]:
    """Create an empty variation repository."""
    return InMemoryDocumentRepository(Variation)


@pytest.fixture
def hierarchy_service(
    category_repository: InMemoryDocumentRepository[Category],
) -> CategoryHierarchyService:
    """Create a hierarchy service over the category repository."""
    return CategoryHierarchyService(category_repository, request_id="test-request")


@pytest.fixture
def variation_service(
    variation_repository: InMemoryDocumentRepository[Variation],
) -> VariationService:
    """Create a variation service over the variation repository."""
    return VariationService(variation_repository, request_id="test-request")
