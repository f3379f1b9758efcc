"""Document store — append-only collections with store-assigned ids.

Learn: This is the whole persistence capability the app relies on:
  add(collection, data) -> id
  list(collection)      -> documents, newest first
Documents are never updated or deleted. Every SQLAlchemy failure is
turned into a StorageError here so callers deal with one error type.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from grindlink.db.models import Document
from grindlink.errors import StorageError


@dataclass(frozen=True)
class StoredDocument:
    id: str
    data: dict
    created_at: datetime


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DocumentStore:
    """Append-only document store backed by SQLAlchemy."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self.engine = engine
        self.session_factory = session_factory

    async def add(self, collection: str, data: dict, created_at: datetime) -> str:
        """Insert a document and return its store-assigned id.

        Returns only after the commit, so the document is readable by
        list() as soon as this returns.
        """
        try:
            async with self.session_factory() as session:
                doc = Document(collection=collection, data=data, created_at=created_at)
                session.add(doc)
                await session.commit()
                return doc.id
        except SQLAlchemyError as e:
            raise StorageError() from e

    async def list(self, collection: str) -> list[StoredDocument]:
        """All documents in a collection, newest created_at first.

        Ties on created_at fall back to reverse insertion order, which is
        stable across calls.
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Document)
                    .where(Document.collection == collection)
                    .order_by(Document.created_at.desc(), Document.seq.desc())
                )
                docs = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError() from e

        return [
            StoredDocument(id=d.id, data=d.data, created_at=_as_utc(d.created_at))
            for d in docs
        ]

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    async def close(self) -> None:
        await self.engine.dispose()
