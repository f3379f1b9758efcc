"""SQLAlchemy ORM models — the document store's single table.

Learn: The store is document-shaped: every record of every entity lives
in one table, keyed by a namespaced collection path. The record's own
fields go into a JSON column (JSONB on PostgreSQL); only what the store
needs to order and identify documents gets a real column.

- id: store-assigned string id, immutable
- seq: insertion order, the tie-break when two documents share created_at
- created_at: server-assigned creation time, the listing sort key
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    return uuid.uuid4().hex


class Document(Base):
    """One stored record in one collection."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("idx_documents_collection_created", "collection", "created_at"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, default=new_document_id
    )
    collection: Mapped[str] = mapped_column(String(300), nullable=False)
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
