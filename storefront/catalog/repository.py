"""Document repository port and in-memory implementation.

The catalog services only talk to storage through ``DocumentRepository``:
find / find_one / find_by_id / count / save over a single collection, with
Mongo-style filter documents.

Supported filter syntax:
    {"parent": "abc"}                   equality (membership for array fields)
    {"parent": None}                    missing or null
    {"id": {"$in": [...]}}              set membership ($nin for the inverse)
    {"is_deleted": {"$ne": True}}       inequality
    {"inventory.quantity": {"$lte": 5}} comparisons ($gt, $gte, $lt, $lte)
    {"inventory": {"$exists": True}}    present and not null
    {"$or": [{...}, {...}]}             disjunction of sub-filters

Sort is a list of ``(field, ASCENDING | DESCENDING)`` pairs.

Example usage:
    repo = InMemoryDocumentRepository(Category)
    await repo.save(Category(name="Electronics"))
    roots = await repo.find({"parent": None}, sort=[("order", ASCENDING)])
"""

import operator
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Generic, Protocol, TypeVar

from pydantic import TypeAdapter

from storefront.domain.base import Entity

EntityT = TypeVar("EntityT", bound=Entity)

Filter = Mapping[str, Any]
Sort = Sequence[tuple[str, int]]

ASCENDING = 1
DESCENDING = -1


class DocumentRepository(Protocol[EntityT]):
    """Storage port consumed by the catalog services."""

    async def find(
        self,
        filter: Filter | None = None,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[EntityT]:
        """Return entities matching the filter."""
        ...

    async def find_one(self, filter: Filter) -> EntityT | None:
        """Return the first entity matching the filter."""
        ...

    async def find_by_id(self, entity_id: str) -> EntityT | None:
        """Return the entity with the given id."""
        ...

    async def count(self, filter: Filter | None = None) -> int:
        """Count entities matching the filter."""
        ...

    async def save(self, entity: EntityT) -> EntityT:
        """Insert or replace the entity by id."""
        ...


# ============================================================================
# Filter evaluation
# ============================================================================


_MISSING = object()

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def resolve_path(document: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path into a nested document.

    Args:
        document: Document to read from.
        path: Dotted field path (e.g., "inventory.quantity").

    Returns:
        The value, or a sentinel when any step is missing.
    """
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _equals(value: Any, expected: Any) -> bool:
    if expected is None:
        return value is _MISSING or value is None
    if value is _MISSING:
        return False
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _matches_condition(value: Any, condition: Any) -> bool:
    if not (isinstance(condition, Mapping) and any(k.startswith("$") for k in condition)):
        return _equals(value, condition)

    for op, operand in condition.items():
        if op == "$in":
            if not any(_equals(value, candidate) for candidate in operand):
                return False
        elif op == "$nin":
            if any(_equals(value, candidate) for candidate in operand):
                return False
        elif op == "$ne":
            if _equals(value, operand):
                return False
        elif op == "$exists":
            present = value is not _MISSING and value is not None
            if present != bool(operand):
                return False
        elif op in _COMPARISONS:
            if value is _MISSING or value is None:
                return False
            if not _COMPARISONS[op](value, operand):
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


def matches_filter(document: Mapping[str, Any], filter: Filter | None) -> bool:
    """Check whether a document satisfies a filter.

    Args:
        document: Stored document.
        filter: Filter document (None or empty matches everything).

    Returns:
        True if every condition holds.
    """
    for key, condition in (filter or {}).items():
        if key == "$or":
            if not any(matches_filter(document, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches_filter(document, sub) for sub in condition):
                return False
        elif not _matches_condition(resolve_path(document, key), condition):
            return False
    return True


def sort_documents(documents: list[dict[str, Any]], sort: Sort | None) -> list[dict[str, Any]]:
    """Sort documents by several keys, missing and null values first."""
    ordered = list(documents)
    for field_path, direction in reversed(list(sort or [])):

        def key(doc: dict[str, Any], path: str = field_path) -> tuple[bool, Any]:
            value = resolve_path(doc, path)
            present = value is not _MISSING and value is not None
            return (present, value if present else 0)

        ordered.sort(key=key, reverse=direction == DESCENDING)
    return ordered


# ============================================================================
# In-Memory Repository
# ============================================================================


class InMemoryDocumentRepository(Generic[EntityT]):
    """In-memory document repository.

    Entities are stored as serialized documents, so every read returns a
    detached copy the same way a real document store would.
    """

    def __init__(self, entity_type: type[EntityT]) -> None:
        self._adapter: TypeAdapter[EntityT] = TypeAdapter(entity_type)
        self._documents: dict[str, dict[str, Any]] = {}

    def _load(self, document: dict[str, Any]) -> EntityT:
        return self._adapter.validate_python(document)

    async def find(
        self,
        filter: Filter | None = None,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[EntityT]:
        """Find entities matching a filter."""
        matched = [doc for doc in self._documents.values() if matches_filter(doc, filter)]
        matched = sort_documents(matched, sort)
        if limit is not None:
            matched = matched[:limit]
        return [self._load(doc) for doc in matched]

    async def find_one(self, filter: Filter) -> EntityT | None:
        """Find the first entity matching a filter."""
        results = await self.find(filter, limit=1)
        return results[0] if results else None

    async def find_by_id(self, entity_id: str) -> EntityT | None:
        """Get entity by ID."""
        document = self._documents.get(entity_id)
        return self._load(document) if document is not None else None

    async def count(self, filter: Filter | None = None) -> int:
        """Count entities matching a filter."""
        return sum(1 for doc in self._documents.values() if matches_filter(doc, filter))

    async def save(self, entity: EntityT) -> EntityT:
        """Save an entity, replacing any stored version."""
        self._documents[entity.id] = self._adapter.dump_python(entity)
        return entity

    def __len__(self) -> int:
        return len(self._documents)
