"""PostgreSQL document repository.

Implements the catalog storage port over the JSONB ``documents`` table.
Filter documents are compiled to SQL:

- equality becomes JSONB containment (``body @> {...}``), tried both as a
  scalar and as a one-element array so array fields match by membership
- ``None`` and ``$exists`` test the extracted text value for NULL
- ``$gt``/``$gte``/``$lt``/``$lte`` compare numerically for numbers and
  as text otherwise
- ``$or``/``$and`` map to ``OR``/``AND``

Sorting uses JSONB ordering of the extracted value with missing values
first on ascending sorts, as in the in-memory repository.
"""

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Generic

import structlog
from pydantic import TypeAdapter
from sqlalchemy import Float, and_, cast, false, func, not_, or_, select, true
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from storefront.catalog.repository import DESCENDING, EntityT, Filter, Sort
from storefront.domain.entities import Category, Variation
from storefront.infrastructure.database import session_scope
from storefront.infrastructure.models import DocumentModel

logger = structlog.get_logger()


# ============================================================================
# Filter compilation
# ============================================================================


def _path(field_path: str) -> tuple[str, ...]:
    return tuple(field_path.split("."))


def _nest(field_path: str, value: Any) -> dict[str, Any]:
    nested: Any = value
    for part in reversed(_path(field_path)):
        nested = {part: nested}
    return nested


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _equals(field_path: str, expected: Any) -> ColumnElement[bool]:
    body = DocumentModel.body
    if expected is None:
        return body[_path(field_path)].astext.is_(None)
    value = _json_value(expected)
    if isinstance(value, (list, dict)):
        return body.contains(_nest(field_path, value))
    return or_(
        body.contains(_nest(field_path, value)),
        body.contains(_nest(field_path, [value])),
    )


def _compare(field_path: str, op: str, operand: Any) -> ColumnElement[bool]:
    text = DocumentModel.body[_path(field_path)].astext
    if isinstance(operand, (int, float)) and not isinstance(operand, bool):
        left: Any = cast(text, Float)
        right: Any = operand
    else:
        left, right = text, str(_json_value(operand))

    if op == "$gt":
        return left > right
    if op == "$gte":
        return left >= right
    if op == "$lt":
        return left < right
    return left <= right


def _condition(field_path: str, condition: Any) -> ColumnElement[bool]:
    if not (isinstance(condition, Mapping) and any(k.startswith("$") for k in condition)):
        return _equals(field_path, condition)

    clauses: list[ColumnElement[bool]] = []
    for op, operand in condition.items():
        if op == "$in":
            options = [_equals(field_path, candidate) for candidate in operand]
            clauses.append(or_(*options) if options else false())
        elif op == "$nin":
            options = [_equals(field_path, candidate) for candidate in operand]
            clauses.append(not_(or_(*options)) if options else true())
        elif op == "$ne":
            clauses.append(not_(_equals(field_path, operand)))
        elif op == "$exists":
            text = DocumentModel.body[_path(field_path)].astext
            clauses.append(text.is_not(None) if operand else text.is_(None))
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            clauses.append(_compare(field_path, op, operand))
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return and_(*clauses)


def compile_filter(filter: Filter | None) -> ColumnElement[bool]:
    """Translate a filter document into a SQL boolean expression.

    Args:
        filter: Filter document (None or empty matches everything).

    Returns:
        Expression over ``DocumentModel.body``.

    Raises:
        ValueError: For operators the port does not support.
    """
    clauses: list[ColumnElement[bool]] = []
    for key, condition in (filter or {}).items():
        if key == "$or":
            clauses.append(or_(*(compile_filter(sub) for sub in condition)))
        elif key == "$and":
            clauses.append(and_(*(compile_filter(sub) for sub in condition)))
        else:
            clauses.append(_condition(key, condition))
    return and_(true(), *clauses)


def compile_sort(sort: Sort | None) -> list[Any]:
    """Translate ``(field, direction)`` pairs into ORDER BY clauses."""
    clauses = []
    for field_path, direction in sort or []:
        value = DocumentModel.body[_path(field_path)]
        if direction == DESCENDING:
            clauses.append(value.desc().nulls_last())
        else:
            clauses.append(value.asc().nulls_first())
    return clauses


# ============================================================================
# Repository
# ============================================================================


class SqlDocumentRepository(Generic[EntityT]):
    """Document repository over one collection of the ``documents`` table.

    The session is owned by the caller; ``save`` executes the upsert but
    does not commit.

    Example usage:
        async with session_scope() as session:
            repo = get_category_repository(session)
            service = CategoryHierarchyService(repo)
            await service.create_category("Electronics")
    """

    def __init__(
        self,
        session: AsyncSession,
        entity_type: type[EntityT],
        collection: str,
    ) -> None:
        """Initialize repository.

        Args:
            session: Async database session.
            entity_type: Entity dataclass stored in the collection.
            collection: Collection name.
        """
        self.session = session
        self.collection = collection
        self._adapter: TypeAdapter[EntityT] = TypeAdapter(entity_type)

    def _where(self, filter: Filter | None) -> ColumnElement[bool]:
        return and_(DocumentModel.collection == self.collection, compile_filter(filter))

    def _load(self, body: dict[str, Any]) -> EntityT:
        return self._adapter.validate_python(body)

    async def find(
        self,
        filter: Filter | None = None,
        sort: Sort | None = None,
        limit: int | None = None,
    ) -> list[EntityT]:
        """Find entities matching a filter."""
        stmt = select(DocumentModel.body).where(self._where(filter))
        stmt = stmt.order_by(*compile_sort(sort), DocumentModel.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [self._load(body) for body in result.scalars().all()]

    async def find_one(self, filter: Filter) -> EntityT | None:
        """Find the first entity matching a filter."""
        results = await self.find(filter, limit=1)
        return results[0] if results else None

    async def find_by_id(self, entity_id: str) -> EntityT | None:
        """Get entity by ID."""
        stmt = select(DocumentModel.body).where(
            DocumentModel.collection == self.collection,
            DocumentModel.id == entity_id,
        )
        result = await self.session.execute(stmt)
        body = result.scalar_one_or_none()
        return self._load(body) if body is not None else None

    async def count(self, filter: Filter | None = None) -> int:
        """Count entities matching a filter."""
        stmt = select(func.count()).select_from(DocumentModel).where(self._where(filter))
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def save(self, entity: EntityT) -> EntityT:
        """Insert or replace the entity by id."""
        body = self._adapter.dump_python(entity, mode="json")
        stmt = insert(DocumentModel).values(
            collection=self.collection,
            id=entity.id,
            body=body,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DocumentModel.collection, DocumentModel.id],
            set_={"body": stmt.excluded.body, "updated_at": stmt.excluded.updated_at},
        )
        await self.session.execute(stmt)

        logger.debug("Document saved", collection=self.collection, document_id=entity.id)
        return entity


CATEGORIES = "categories"
VARIATIONS = "variations"


def get_category_repository(session: AsyncSession) -> SqlDocumentRepository[Category]:
    """Get the category repository for a session."""
    return SqlDocumentRepository(session, Category, CATEGORIES)


def get_variation_repository(session: AsyncSession) -> SqlDocumentRepository[Variation]:
    """Get the variation repository for a session."""
    return SqlDocumentRepository(session, Variation, VARIATIONS)


@asynccontextmanager
async def catalog_repositories() -> AsyncIterator[
    tuple[SqlDocumentRepository[Category], SqlDocumentRepository[Variation]]
]:
    """Category and variation repositories sharing one committed session.

    Example usage:
        async with catalog_repositories() as (categories, variations):
            await CategoryHierarchyService(categories).create_category("Electronics")
    """
    async with session_scope() as session:
        yield get_category_repository(session), get_variation_repository(session)
