"""Catalog services.

Provides the category hierarchy service, the variation pricing engine and
the variation service, all working against the ``DocumentRepository`` port.
"""

from storefront.catalog import pricing
from storefront.catalog.hierarchy import CategoryHierarchyService
from storefront.catalog.repository import (
    ASCENDING,
    DESCENDING,
    DocumentRepository,
    InMemoryDocumentRepository,
    matches_filter,
)
from storefront.catalog.schemas import VariationSummary, VariationSummaryAnalytics
from storefront.catalog.slugs import slugify
from storefront.catalog.variations import PriceRange, VariationService, prepare_inventory

__all__ = [
    # Storage port
    "ASCENDING",
    "DESCENDING",
    "DocumentRepository",
    "InMemoryDocumentRepository",
    "matches_filter",
    # Hierarchy
    "CategoryHierarchyService",
    # Pricing
    "pricing",
    "VariationSummary",
    "VariationSummaryAnalytics",
    # Variations
    "PriceRange",
    "VariationService",
    "prepare_inventory",
    # Helpers
    "slugify",
]
