"""SQLAlchemy models for database tables.

Catalog entities are stored as JSONB documents in a single table, one
logical collection per entity type.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, PrimaryKeyConstraint, String
from sqlalchemy.dialects.postgresql import JSONB

from storefront.infrastructure.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentModel(Base):
    """Stored catalog document.

    ``body`` holds the serialized entity, including its own ``id``;
    filters and sorts are evaluated against it.
    """

    __tablename__ = "documents"

    collection = Column(String(50), nullable=False)
    id = Column(String(64), nullable=False)
    body = Column(JSONB, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utc_now, onupdate=_utc_now
    )

    __table_args__ = (
        PrimaryKeyConstraint("collection", "id", name="pk_documents"),
        Index("ix_documents_body", "body", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<DocumentModel(collection={self.collection}, id={self.id})>"
