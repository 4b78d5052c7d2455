"""
SQL document store.

Stores every collection in the `documents` table through SQLAlchemy's async
ORM. Each operation runs inside one transaction, and an asyncio.Lock keeps
operations from the same process serialized (SQLite allows a single writer).
"""

import asyncio
from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from camnotify.database import create_engine, create_session_maker, init_db
from camnotify.orm.models import DocumentORM
from camnotify.storage.base import Document, DocumentStore, matches

logger = structlog.get_logger(__name__)


class SQLDocumentStore(DocumentStore):
    """Document store persisted with SQLAlchemy."""

    def __init__(self, engine: AsyncEngine, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy async engine
            session_maker: Optional session factory (built from engine if omitted)
        """
        self.engine = engine
        self.session_maker = session_maker or create_session_maker(engine)
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(cls, database_url: Optional[str] = None) -> "SQLDocumentStore":
        """Create the engine, ensure the schema exists and return a store."""
        engine = create_engine(database_url)
        await init_db(engine)
        return cls(engine)

    async def all(self, collection: str) -> list[Document]:
        async with self._lock, self.session_maker() as session:
            rows = await self._rows(session, collection)
            return [row.payload for row in rows]

    async def find(self, collection: str, **criteria: Any) -> Optional[Document]:
        for document in await self.all(collection):
            if matches(document, criteria):
                return document
        return None

    async def append(
        self,
        collection: str,
        document: Document,
        max_size: Optional[int] = None,
        replace_key: Optional[str] = None,
    ) -> list[Document]:
        async with self._lock, self.session_maker() as session, session.begin():
            if replace_key is not None:
                replaced = [
                    row
                    for row in await self._rows(session, collection)
                    if row.payload.get(replace_key) == document.get(replace_key)
                ]
                if replaced:
                    await session.execute(
                        delete(DocumentORM).where(DocumentORM.pk.in_([row.pk for row in replaced]))
                    )
                    logger.debug(
                        "documents_replaced",
                        collection=collection,
                        key=replace_key,
                        replaced=len(replaced),
                    )

            last_position = await session.scalar(
                select(func.max(DocumentORM.position)).where(DocumentORM.collection == collection)
            )
            session.add(
                DocumentORM(
                    collection=collection,
                    position=(last_position or 0) + 1,
                    payload=document,
                )
            )
            await session.flush()

            if max_size is None:
                return []
            return await self._trim(session, collection, max_size)

    async def trim(self, collection: str, max_size: int) -> list[Document]:
        async with self._lock, self.session_maker() as session, session.begin():
            return await self._trim(session, collection, max_size)

    async def remove(self, collection: str, **criteria: Any) -> list[Document]:
        async with self._lock, self.session_maker() as session, session.begin():
            rows = [row for row in await self._rows(session, collection) if matches(row.payload, criteria)]
            if rows:
                await session.execute(
                    delete(DocumentORM).where(DocumentORM.pk.in_([row.pk for row in rows]))
                )
            return [row.payload for row in rows]

    async def clear(self, collection: str) -> int:
        async with self._lock, self.session_maker() as session, session.begin():
            result = await session.execute(
                delete(DocumentORM).where(DocumentORM.collection == collection)
            )
            return result.rowcount or 0

    async def replace(self, collection: str, documents: list[Document]) -> None:
        async with self._lock, self.session_maker() as session, session.begin():
            await session.execute(delete(DocumentORM).where(DocumentORM.collection == collection))
            session.add_all(
                DocumentORM(collection=collection, position=position, payload=document)
                for position, document in enumerate(documents, start=1)
            )

    async def close(self) -> None:
        await self.engine.dispose()

    async def _rows(self, session: AsyncSession, collection: str) -> list[DocumentORM]:
        result = await session.execute(
            select(DocumentORM)
            .where(DocumentORM.collection == collection)
            .order_by(DocumentORM.position)
        )
        return list(result.scalars().all())

    async def _trim(self, session: AsyncSession, collection: str, max_size: int) -> list[Document]:
        rows = await self._rows(session, collection)
        excess = len(rows) - max_size
        if excess <= 0:
            return []

        evicted = rows[:excess]
        await session.execute(
            delete(DocumentORM).where(DocumentORM.pk.in_([row.pk for row in evicted]))
        )
        logger.debug("documents_trimmed", collection=collection, evicted=excess)
        return [row.payload for row in evicted]
