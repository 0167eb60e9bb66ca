"""Initial schema: document and unique key tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Creates:
- documents: JSON documents keyed by (container, id) with partition key,
  type tag and etag columns
- document_unique_keys: unique field reservations per container scope
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # DOCUMENTS TABLE
    # ==========================================================================
    op.create_table(
        "documents",
        sa.Column("container", sa.String(64), primary_key=True),
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("partition_key", sa.String(255), nullable=False),
        sa.Column("doc_type", sa.String(64), nullable=True),
        sa.Column("body", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("etag", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_documents_container_partition", "documents", ["container", "partition_key"])
    op.create_index("ix_documents_container_type", "documents", ["container", "doc_type"])

    # ==========================================================================
    # UNIQUE KEYS TABLE
    # ==========================================================================
    op.create_table(
        "document_unique_keys",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("container", sa.String(64), nullable=False),
        sa.Column("scope", sa.String(255), nullable=False),
        sa.Column("key_path", sa.String(64), nullable=False),
        sa.Column("key_value", sa.String(512), nullable=False),
        sa.Column("document_id", sa.String(64), nullable=False),
        sa.UniqueConstraint(
            "container", "scope", "key_path", "key_value",
            name="uq_document_unique_keys_value",
        ),
        sa.ForeignKeyConstraint(
            ["container", "document_id"],
            ["documents.container", "documents.id"],
            ondelete="CASCADE",
        ),
    )


def downgrade() -> None:
    op.drop_table("document_unique_keys")
    op.drop_index("ix_documents_container_type", table_name="documents")
    op.drop_index("ix_documents_container_partition", table_name="documents")
    op.drop_table("documents")
