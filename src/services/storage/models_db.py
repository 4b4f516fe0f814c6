"""
SQLAlchemy ORM model for the document store.

Every collection lives in the single ``documents`` table; the payload is a
JSON object and the public ID is an opaque hex string.
"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from src.services.storage.database import Base


class Collection(StrEnum):
    """Named document collections."""

    plots = "plots"


class Document(Base):
    """A schemaless document in a named collection."""

    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_collection_seq", "collection", "seq"),)

    seq: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, default=lambda: uuid.uuid4().hex
    )
    collection: Mapped[str] = mapped_column(String(64))
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        """Return the payload with its ``id`` merged in."""
        return {"id": self.id, **(self.data or {})}

    def __repr__(self) -> str:
        return f"<Document {self.collection}/{self.id}>"
