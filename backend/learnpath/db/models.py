"""
SQLAlchemy 2.0 Models for LearnPath.

The application stores JSON documents rather than relational rows.
Two tables back every container:

- documents: one row per document, keyed by (container, id), with the
  partition key and document type promoted to columns for filtering
- document_unique_keys: reservations that make a field value unique
  within a scope (a partition, or the whole container when scope is "")
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKeyConstraint, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from learnpath.db.base import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    """A JSON document in a named container."""

    __tablename__ = "documents"

    container: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    partition_key: Mapped[str] = mapped_column(String(255), nullable=False)
    doc_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    body: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    etag: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_documents_container_partition", "container", "partition_key"),
        Index("ix_documents_container_type", "container", "doc_type"),
    )


class DocumentUniqueKey(Base):
    """
    Reservation of a unique field value.

    Inserted in the same transaction as its document, so a duplicate value
    fails the whole create with an integrity error.
    """

    __tablename__ = "document_unique_keys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    container: Mapped[str] = mapped_column(String(64), nullable=False)
    scope: Mapped[str] = mapped_column(String(255), nullable=False)
    key_path: Mapped[str] = mapped_column(String(64), nullable=False)
    key_value: Mapped[str] = mapped_column(String(512), nullable=False)
    document_id: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "container", "scope", "key_path", "key_value",
            name="uq_document_unique_keys_value",
        ),
        ForeignKeyConstraint(
            ["container", "document_id"],
            ["documents.container", "documents.id"],
            ondelete="CASCADE",
        ),
    )
