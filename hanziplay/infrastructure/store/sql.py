# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relational document store using SQLAlchemy async.

Documents are kept as JSON payloads in a single ``documents`` table keyed
by (collection, doc_id). Predicates on JSON fields are evaluated
client-side after a per-collection select, so every backend supported by
SQLAlchemy's JSON type works unchanged.

Uses SQLAlchemy 2.0 async API with aiosqlite (default) or asyncpg.

Example:
    store = SQLAlchemyRecordStore.from_settings(settings.store)
    await store.create_schema()

    docs = await store.query("userGameData", [Predicate("GameId", "==", "Game1")])
"""

import logging
from collections.abc import Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, AsyncIterator
from uuid import uuid4

from pydantic_core import to_jsonable_python
from sqlalchemy import JSON, DateTime, String, delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from hanziplay.infrastructure.store.base import (
    Document,
    DocumentNotFoundError,
    OrderBy,
    Predicate,
    RecordStore,
    StoreUnavailableError,
    apply_query,
)
from hanziplay.utils.datetime import utc_now

if TYPE_CHECKING:
    from hanziplay.core.config.settings import StoreSettings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for store tables."""


class DocumentRow(Base):
    """One stored document."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def to_document(self) -> Document:
        return Document(id=self.doc_id, data=dict(self.data or {}))


def _encode(data: dict[str, Any]) -> dict[str, Any]:
    """Make a payload JSON-safe (datetimes become ISO strings)."""
    return to_jsonable_python(data)


class SQLAlchemyRecordStore(RecordStore):
    """RecordStore persisted through an async SQLAlchemy engine.

    Attributes:
        _engine: Async engine.
        _sessionmaker: Session factory bound to the engine.
    """

    def __init__(self, url: str, echo: bool = False, pool_pre_ping: bool = True) -> None:
        """Initialize the engine and session factory.

        Args:
            url: SQLAlchemy async database URL.
            echo: Log emitted SQL.
            pool_pre_ping: Test pooled connections before use.

        Raises:
            StoreUnavailableError: If the engine cannot be created.
        """
        try:
            self._engine: AsyncEngine = create_async_engine(
                url,
                echo=echo,
                pool_pre_ping=pool_pre_ping,
            )
        except SQLAlchemyError as e:
            raise StoreUnavailableError("Failed to initialize document store", e) from e

        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: "StoreSettings") -> "SQLAlchemyRecordStore":
        """Build a store from StoreSettings."""
        return cls(settings.url, echo=settings.echo, pool_pre_ping=settings.pool_pre_ping)

    async def create_schema(self) -> None:
        """Create the documents table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreUnavailableError("Failed to create document store schema", e) from e

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Session committed on success and rolled back on exception."""
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreUnavailableError("Document store operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        async with self._session() as session:
            result = await session.execute(
                select(DocumentRow).where(DocumentRow.collection == collection)
            )
            documents = [row.to_document() for row in result.scalars().all()]

        return apply_query(documents, predicates, order_by, limit)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        async with self._session() as session:
            row = await session.get(DocumentRow, (collection, doc_id))
            return row.to_document() if row is not None else None

    async def put(
        self,
        collection: str,
        data: dict[str, Any],
        doc_id: str | None = None,
    ) -> str:
        doc_id = doc_id or uuid4().hex
        payload = _encode(data)

        async with self._session() as session:
            row = await session.get(DocumentRow, (collection, doc_id))
            if row is None:
                session.add(DocumentRow(collection=collection, doc_id=doc_id, data=payload))
            else:
                row.data = payload

        logger.debug("Stored document %s/%s", collection, doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        async with self._session() as session:
            row = await session.get(DocumentRow, (collection, doc_id))
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)
            # Reassign so the JSON column registers the change
            row.data = {**(row.data or {}), **_encode(changes)}

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(DocumentRow).where(
                    DocumentRow.collection == collection,
                    DocumentRow.doc_id == doc_id,
                )
            )

    async def check_connection(self) -> bool:
        """Check if the database is reachable."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def close(self) -> None:
        await self._engine.dispose()
