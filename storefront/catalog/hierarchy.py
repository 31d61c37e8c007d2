"""Category hierarchy service.

Maintains the derived hierarchy fields of categories (ancestors, level,
path, materialized path) and answers tree queries:

- Writing categories with the hierarchy recomputed before every persist
- Tree, leaf and breadcrumb queries over active categories
- Cycle-safe moves that cascade to every descendant

Every write path that sets or changes ``Category.parent`` goes through
``recompute_hierarchy`` before the document is saved. Cascades are
idempotent: rerunning ``update_descendant_hierarchy`` always converges to
the correct ancestor chains, so a cascade interrupted halfway is repaired
by running it again.
"""

from typing import Any

import structlog

from storefront.catalog.repository import ASCENDING, DESCENDING, DocumentRepository, Filter, Sort
from storefront.catalog.slugs import slugify
from storefront.domain.entities import Category
from storefront.domain.exceptions import (
    CategoryCycleError,
    CategoryHasChildrenError,
    CategoryNotFoundError,
)

logger = structlog.get_logger()

# Applied on top of caller filters; wins on key collisions.
ACTIVE_GUARD: dict[str, Any] = {"is_deleted": False, "is_active": True}

BY_ORDER: Sort = [("order", ASCENDING)]


class CategoryHierarchyService:
    """Service for category tree maintenance and queries.

    Example usage:
        service = CategoryHierarchyService(InMemoryDocumentRepository(Category))
        electronics = await service.create_category("Electronics")
        laptops = await service.create_category("Laptops", parent_id=electronics.id)
        await service.get_breadcrumb_path(laptops.id)
    """

    def __init__(
        self,
        repository: DocumentRepository[Category],
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Category document repository.
            request_id: Request ID for correlation.
        """
        self.repository = repository
        self.request_id = request_id

    # ========================================================================
    # Write path
    # ========================================================================

    async def recompute_hierarchy(self, category: Category) -> Category:
        """Derive ancestors, level and paths from the category's parent.

        Args:
            category: Category to update in place (not persisted).

        Returns:
            The same category.

        Raises:
            CategoryNotFoundError: If the parent reference does not resolve.
            CategoryCycleError: If the parent is the category or one of its descendants.
        """
        if category.parent is None:
            category.ancestors = []
            category.path = category.name
            category.materialized_path = "/"
        else:
            parent = await self.repository.find_by_id(category.parent)
            if parent is None:
                raise CategoryNotFoundError(category.parent, role="parent")
            if parent.id == category.id or category.id in parent.ancestors:
                raise CategoryCycleError(category.id, parent.id)

            category.ancestors = [*parent.ancestors, parent.id]
            category.path = f"{parent.path} > {category.name}"
            category.materialized_path = f"{parent.materialized_path}{parent.id}/"

        category.level = len(category.ancestors)
        return category

    async def save_category(self, category: Category) -> Category:
        """Persist a category after recomputing its hierarchy fields.

        Renaming a stored category rewrites the ``path`` of its descendants.
        Parent changes are cascaded by ``move_category``.

        Args:
            category: Category to save.

        Returns:
            Saved category.
        """
        previous = await self.repository.find_by_id(category.id)
        await self.recompute_hierarchy(category)
        category.touch()
        saved = await self.repository.save(category)

        if previous is not None and previous.name != category.name:
            updated = await self.update_descendant_hierarchy(category.id)
            logger.info(
                "Category renamed",
                category_id=category.id,
                old_name=previous.name,
                new_name=category.name,
                descendants_updated=updated,
                request_id=self.request_id,
            )
        return saved

    async def create_category(
        self,
        name: str,
        parent_id: str | None = None,
        *,
        description: str | None = None,
        order: int | None = None,
        is_active: bool = True,
    ) -> Category:
        """Create a category under an optional parent.

        The slug is generated from the name. When the plain slug is taken,
        the parent's slug is used as a prefix, then a numeric suffix.
        Without an explicit order the category goes after its last sibling.

        Args:
            name: Category name.
            parent_id: Parent category ID, None for a root.
            description: Optional description.
            order: Sort key among siblings.
            is_active: Whether the category starts active.

        Returns:
            The created category.

        Raises:
            CategoryNotFoundError: If the parent does not exist.
        """
        parent: Category | None = None
        if parent_id is not None:
            parent = await self.repository.find_by_id(parent_id)
            if parent is None:
                logger.warning(
                    "Parent category not found during creation",
                    parent_id=parent_id,
                    category_name=name,
                    request_id=self.request_id,
                )
                raise CategoryNotFoundError(parent_id, role="parent")

        category = Category(
            name=name,
            parent=parent_id,
            description=description,
            order=order,
            is_active=is_active,
        )
        category.slug = await self._unique_slug(name, parent)
        if category.order is None:
            category.order = await self._next_sibling_order(parent_id)

        await self.save_category(category)

        logger.info(
            "Category created",
            category_id=category.id,
            category_name=name,
            parent_id=parent_id,
            level=category.level,
            request_id=self.request_id,
        )
        return category

    async def _unique_slug(self, name: str, parent: Category | None) -> str:
        base = slugify(name) or "category"
        candidates = [base]
        if parent is not None:
            candidates.append(f"{parent.slug or slugify(parent.name)}-{base}")

        for candidate in candidates:
            if await self.repository.count({"slug": candidate}) == 0:
                return candidate

        suffix = 2
        while await self.repository.count({"slug": f"{candidates[-1]}-{suffix}"}) > 0:
            suffix += 1
        return f"{candidates[-1]}-{suffix}"

    async def _next_sibling_order(self, parent_id: str | None) -> int:
        last = await self.repository.find(
            {"parent": parent_id},
            sort=[("order", DESCENDING)],
            limit=1,
        )
        if not last or last[0].order is None:
            return 0
        return last[0].order + 1

    # ========================================================================
    # Queries
    # ========================================================================

    async def find_active_categories(
        self,
        filter: Filter | None = None,
        sort: Sort | None = None,
    ) -> list[Category]:
        """Find active, non-deleted categories matching extra conditions.

        Args:
            filter: Additional conditions; cannot override the active guard.
            sort: Optional sort order.

        Returns:
            Matching categories.
        """
        return await self.repository.find({**(filter or {}), **ACTIVE_GUARD}, sort=sort)

    async def find_active_one(self, filter: Filter) -> Category | None:
        """Find one active, non-deleted category matching extra conditions."""
        return await self.repository.find_one({**filter, **ACTIVE_GUARD})

    async def get_hierarchy_tree(self, parent_id: str | None = None) -> list[Category]:
        """Get the immediate active children of a category, or the roots.

        Args:
            parent_id: Parent category ID, None for root categories.

        Returns:
            Children sorted by order. Deeper levels need further calls.
        """
        return await self.find_active_categories({"parent": parent_id}, sort=BY_ORDER)

    async def get_children(self, category_id: str) -> list[Category]:
        """Get non-deleted direct children, active or not, sorted by order."""
        return await self.repository.find(
            {"parent": category_id, "is_deleted": False},
            sort=BY_ORDER,
        )

    async def _count_children(self, category_id: str) -> int:
        # Inactive children count; only soft-deleted ones are ignored.
        return await self.repository.count({"parent": category_id, "is_deleted": False})

    async def is_leaf_category(self, category_id: str) -> bool:
        """Check whether a category has no non-deleted children."""
        return await self._count_children(category_id) == 0

    async def get_leaf_categories(self) -> list[Category]:
        """Get every active category without non-deleted children.

        Returns:
            Leaf categories.
        """
        leaves = []
        for category in await self.find_active_categories():
            if await self._count_children(category.id) == 0:
                leaves.append(category)
        return leaves

    async def get_full_hierarchy(self, category_id: str) -> list[Category]:
        """Get the categories from the root down to the given category.

        Args:
            category_id: Category ID.

        Returns:
            Ancestors sorted by level followed by the category itself,
            or an empty list if the category does not exist.
        """
        category = await self.repository.find_by_id(category_id)
        if category is None:
            return []

        hierarchy: list[Category] = []
        if category.ancestors:
            hierarchy.extend(
                await self.repository.find(
                    {"id": {"$in": category.ancestors}},
                    sort=[("level", ASCENDING)],
                )
            )
        hierarchy.append(category)
        return hierarchy

    async def get_breadcrumb_path(self, category_id: str) -> list[dict[str, Any]]:
        """Get the root-to-category breadcrumb.

        Args:
            category_id: Category ID.

        Returns:
            ``{id, name, slug, level}`` records, empty if not found.
        """
        return [c.breadcrumb_entry() for c in await self.get_full_hierarchy(category_id)]

    # ========================================================================
    # Moves and cascades
    # ========================================================================

    async def move_category(
        self,
        category_id: str,
        new_parent_id: str | None = None,
    ) -> Category:
        """Move a category under a new parent, or to the root.

        Args:
            category_id: Category to move.
            new_parent_id: New parent ID, None to make it a root.

        Returns:
            The moved category.

        Raises:
            CategoryNotFoundError: If the category or the new parent does not exist.
            CategoryCycleError: If the new parent is the category or a descendant.
        """
        category = await self.repository.find_by_id(category_id)
        if category is None:
            logger.warning(
                "Category not found for move",
                category_id=category_id,
                request_id=self.request_id,
            )
            raise CategoryNotFoundError(category_id)

        if new_parent_id is not None:
            new_parent = await self.repository.find_by_id(new_parent_id)
            if new_parent is None:
                logger.warning(
                    "New parent category not found for move",
                    category_id=category_id,
                    new_parent_id=new_parent_id,
                    request_id=self.request_id,
                )
                raise CategoryNotFoundError(new_parent_id, role="parent")

            if new_parent.id == category.id or category.id in new_parent.ancestors:
                logger.warning(
                    "Rejected move into own subtree",
                    category_id=category_id,
                    new_parent_id=new_parent_id,
                    request_id=self.request_id,
                )
                raise CategoryCycleError(category_id, new_parent_id)

        old_parent_id = category.parent
        category.parent = new_parent_id
        await self.save_category(category)
        updated = await self.update_descendant_hierarchy(category.id)

        logger.info(
            "Category moved",
            category_id=category_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
            level=category.level,
            descendants_updated=updated,
            request_id=self.request_id,
        )
        return category

    async def update_descendant_hierarchy(self, parent_id: str) -> int:
        """Recompute and save the hierarchy of every descendant.

        Descendants are walked breadth-first along parent references, so a
        parent is always saved before its children are recomputed. Documents
        that still list ``parent_id`` among their ancestors without being
        reachable that way (stale chains) are recomputed afterwards.

        Args:
            parent_id: Root of the subtree to repair.

        Returns:
            Number of descendants saved.
        """
        visited: set[str] = {parent_id}
        frontier = [parent_id]
        updated = 0

        while frontier:
            children = await self.repository.find(
                {"parent": {"$in": frontier}},
                sort=BY_ORDER,
            )
            frontier = []
            for child in children:
                if child.id in visited:
                    continue
                visited.add(child.id)
                await self.save_category(child)
                frontier.append(child.id)
                updated += 1

        stale = await self.repository.find(
            {"ancestors": parent_id},
            sort=[("level", ASCENDING)],
        )
        for descendant in stale:
            if descendant.id in visited:
                continue
            visited.add(descendant.id)
            await self.save_category(descendant)
            updated += 1

        logger.debug(
            "Descendant hierarchy updated",
            parent_id=parent_id,
            descendants_updated=updated,
            request_id=self.request_id,
        )
        return updated

    # ========================================================================
    # Soft delete
    # ========================================================================

    async def _get_or_raise(self, category_id: str) -> Category:
        category = await self.repository.find_by_id(category_id)
        if category is None:
            logger.warning(
                "Category not found",
                category_id=category_id,
                request_id=self.request_id,
            )
            raise CategoryNotFoundError(category_id)
        return category

    async def soft_delete_category(self, category_id: str) -> Category:
        """Mark a category deleted and inactive.

        Raises:
            CategoryNotFoundError: If the category does not exist.
            CategoryHasChildrenError: If it still has non-deleted children.
        """
        category = await self._get_or_raise(category_id)

        children_count = await self._count_children(category_id)
        if children_count > 0:
            raise CategoryHasChildrenError(category_id, children_count)

        category.is_deleted = True
        category.is_active = False
        category.touch()
        await self.repository.save(category)

        logger.info("Category soft-deleted", category_id=category_id, request_id=self.request_id)
        return category

    async def restore_category(self, category_id: str) -> Category:
        """Clear the deleted flag and reactivate a category."""
        category = await self._get_or_raise(category_id)
        category.is_deleted = False
        category.is_active = True
        await self.save_category(category)

        logger.info("Category restored", category_id=category_id, request_id=self.request_id)
        return category
