"""
Document store over SQLAlchemy.

Mimics the surface of a partitioned JSON document database:

- create/read/replace/delete/query over documents keyed by (container, id)
- every write assigns a fresh ``_etag``; ``replace`` is a compare-and-swap
  against the etag the caller read
- unique keys are reserved atomically with the create, so two concurrent
  creates of the same value cannot both succeed

Each operation runs in its own short transaction, the way each call to a
hosted document database is independent. Bodies returned to callers are
plain dicts carrying the system properties ``_etag`` and ``_ts``.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any
from uuid import uuid4

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnpath.db.models import Document, DocumentUniqueKey, utcnow

logger = logging.getLogger(__name__)

# Scope value that makes a unique key container-wide instead of per partition
CONTAINER_SCOPE = ""


class DocumentStoreError(Exception):
    """The underlying database failed."""


class DocumentConflict(DocumentStoreError):
    """A document id or unique key value already exists."""


class PreconditionFailed(DocumentStoreError):
    """The etag given to replace no longer matches the stored document."""


def _new_etag() -> str:
    return uuid4().hex


def _strip_system(body: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if not k.startswith("_")}


def _filtered(
    stmt: Select,
    container: str,
    partition_key: str | None,
    doc_type: str | None,
    equals: Mapping[str, Any],
) -> Select:
    """Apply container, partition, type and top-level field equality filters."""
    stmt = stmt.where(Document.container == container)
    if partition_key is not None:
        stmt = stmt.where(Document.partition_key == partition_key)
    if doc_type is not None:
        stmt = stmt.where(Document.doc_type == doc_type)
    for field, value in equals.items():
        element = Document.body[field]
        if isinstance(value, bool):
            stmt = stmt.where(element.as_boolean() == value)
        elif isinstance(value, int):
            stmt = stmt.where(element.as_integer() == value)
        else:
            stmt = stmt.where(element.as_string() == str(value))
    return stmt


def _to_body(row: Document) -> dict[str, Any]:
    body = dict(row.body)
    body["_etag"] = row.etag
    body["_ts"] = int(row.updated_at.timestamp()) if row.updated_at else None
    return body


class DocumentStore:
    """Async document store bound to a session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        container: str,
        body: Mapping[str, Any],
        *,
        partition_key: str,
        unique_keys: Mapping[str, str] | None = None,
        unique_scope: str | None = None,
    ) -> dict[str, Any]:
        """
        Insert a new document.

        Args:
            container: Container name
            body: Document body; must contain a string ``id``
            partition_key: Partition the document lives in
            unique_keys: Field path -> value pairs that must be unique
            unique_scope: Scope for the unique keys; defaults to the partition,
                pass CONTAINER_SCOPE for container-wide uniqueness

        Raises:
            DocumentConflict: id or a unique key value already taken
        """
        data = _strip_system(body)
        doc_id = data.get("id") or str(uuid4())
        data["id"] = doc_id
        scope = partition_key if unique_scope is None else unique_scope

        row = Document(
            container=container,
            id=doc_id,
            partition_key=partition_key,
            doc_type=data.get("type"),
            body=data,
            etag=_new_etag(),
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
                    await session.flush()
                    for key_path, key_value in (unique_keys or {}).items():
                        session.add(
                            DocumentUniqueKey(
                                container=container,
                                scope=scope,
                                key_path=key_path,
                                key_value=key_value,
                                document_id=doc_id,
                            )
                        )
                    await session.flush()
                return _to_body(row)
        except IntegrityError as e:
            raise DocumentConflict(f"Document conflict in {container!r}: {doc_id}") from e
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e

    async def read(self, container: str, doc_id: str, *, partition_key: str) -> dict[str, Any] | None:
        """Point read; returns None when the document does not exist in that partition."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document).where(
                        Document.container == container,
                        Document.id == doc_id,
                        Document.partition_key == partition_key,
                    )
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e
        return _to_body(row) if row is not None else None

    async def replace(
        self,
        container: str,
        body: Mapping[str, Any],
        *,
        partition_key: str,
        if_match: str | None = None,
    ) -> dict[str, Any]:
        """
        Replace a document's body.

        ``if_match`` defaults to the ``_etag`` carried by ``body``. When an
        etag is given and the stored one differs, nothing is written.

        Raises:
            PreconditionFailed: etag mismatch, or the document is gone
        """
        etag = if_match if if_match is not None else body.get("_etag")
        data = _strip_system(body)
        doc_id = data["id"]
        new_etag = _new_etag()
        now = utcnow()

        stmt = (
            update(Document)
            .where(
                Document.container == container,
                Document.id == doc_id,
                Document.partition_key == partition_key,
            )
            .values(body=data, doc_type=data.get("type"), etag=new_etag, updated_at=now)
        )
        if etag is not None:
            stmt = stmt.where(Document.etag == etag)

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e

        if result.rowcount != 1:
            raise PreconditionFailed(f"Document {doc_id!r} in {container!r} changed or is missing")

        return {**data, "_etag": new_etag, "_ts": int(now.timestamp())}

    async def delete(self, container: str, doc_id: str, *, partition_key: str) -> bool:
        """Delete a document and its unique key reservations. Returns False if absent."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(DocumentUniqueKey).where(
                            DocumentUniqueKey.container == container,
                            DocumentUniqueKey.document_id == doc_id,
                        )
                    )
                    result = await session.execute(
                        delete(Document).where(
                            Document.container == container,
                            Document.id == doc_id,
                            Document.partition_key == partition_key,
                        )
                    )
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e
        return result.rowcount == 1

    async def query(
        self,
        container: str,
        *,
        partition_key: str | None = None,
        doc_type: str | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        **equals: Any,
    ) -> list[dict[str, Any]]:
        """
        Query documents by partition, type and top-level field equality.

        Usage:
            topics = await store.query(
                "topics", partition_key=user_id, doc_type="learning_topic", name="Python"
            )

        ``order_by`` names a top-level field; ISO timestamps sort correctly
        as strings.
        """
        stmt = _filtered(select(Document), container, partition_key, doc_type, equals)
        if order_by is not None:
            column = Document.body[order_by].as_string()
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e
        return [_to_body(row) for row in rows]

    async def count(
        self,
        container: str,
        *,
        partition_key: str | None = None,
        doc_type: str | None = None,
        **equals: Any,
    ) -> int:
        """Number of documents matching the same filters as ``query``."""
        stmt = _filtered(select(func.count()).select_from(Document), container, partition_key, doc_type, equals)
        try:
            async with self._session_factory() as session:
                return (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            raise DocumentStoreError(str(e)) from e


async def read_modify_replace(
    store: DocumentStore,
    container: str,
    doc_id: str,
    *,
    partition_key: str,
    mutate: Callable[[dict[str, Any]], None],
    attempts: int = 3,
) -> dict[str, Any] | None:
    """
    Compare-and-swap update loop.

    Reads the document, lets ``mutate`` edit it in place and replaces it
    against the etag just read. A lost race re-reads and re-applies.

    Returns:
        The stored document, or None if it does not exist

    Raises:
        PreconditionFailed: every attempt lost to a concurrent writer
    """
    for attempt in range(attempts):
        doc = await store.read(container, doc_id, partition_key=partition_key)
        if doc is None:
            return None
        mutate(doc)
        try:
            return await store.replace(container, doc, partition_key=partition_key)
        except PreconditionFailed:
            logger.warning(
                "Document %s in %s changed during update (attempt %d/%d)",
                doc_id, container, attempt + 1, attempts,
            )
    raise PreconditionFailed(f"Document {doc_id!r} in {container!r} kept changing")
