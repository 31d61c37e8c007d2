"""Create documents table.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the documents table for catalog collections."""
    op.create_table(
        'documents',
        sa.Column('collection', sa.String(50), nullable=False),
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('body', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('collection', 'id', name='pk_documents'),
    )

    # Containment queries (body @> ...) use the GIN index
    op.create_index(
        'ix_documents_body',
        'documents',
        ['body'],
        postgresql_using='gin',
    )

    # Slugs and SKUs are unique within their collection
    op.execute(
        "CREATE UNIQUE INDEX uq_documents_category_slug ON documents ((body->>'slug')) "
        "WHERE collection = 'categories'"
    )
    op.execute(
        "CREATE UNIQUE INDEX uq_documents_variation_sku ON documents ((body->>'sku')) "
        "WHERE collection = 'variations'"
    )


def downgrade() -> None:
    """Drop the documents table."""
    op.drop_index('uq_documents_variation_sku', table_name='documents')
    op.drop_index('uq_documents_category_slug', table_name='documents')
    op.drop_index('ix_documents_body', table_name='documents')
    op.drop_table('documents')
