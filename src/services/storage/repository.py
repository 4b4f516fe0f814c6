"""
Generic CRUD repository over the document store.

``DocumentRepository`` receives an ``AsyncSession`` and calls ``flush()``
rather than ``commit()`` so that transaction boundaries are controlled by
the caller (typically :func:`get_session`).
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DocumentNotFoundError
from src.services.storage.models_db import Document

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Data-access layer for collection documents.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_row(self, collection: str, doc_id: str) -> Document:
        result = await self._session.execute(
            select(Document).where(
                Document.collection == str(collection),
                Document.id == doc_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise DocumentNotFoundError(str(collection), doc_id)
        return row

    async def add_document(self, collection: str, data: dict) -> str:
        """Insert a document and return its generated ID."""
        doc = Document(id=uuid.uuid4().hex, collection=str(collection), data=dict(data))
        self._session.add(doc)
        await self._session.flush()
        logger.debug("Added %s/%s", collection, doc.id)
        return doc.id

    async def get_document(self, collection: str, doc_id: str) -> dict:
        """Return a document by ID or raise :class:`DocumentNotFoundError`."""
        row = await self._get_row(collection, doc_id)
        return row.to_dict()

    async def list_documents(
        self,
        collection: str,
        newest_first: bool = True,
    ) -> list[dict]:
        """Return all documents in a collection by insertion sequence."""
        order = Document.seq.desc() if newest_first else Document.seq.asc()
        stmt = select(Document).where(Document.collection == str(collection)).order_by(order)
        result = await self._session.execute(stmt)
        return [row.to_dict() for row in result.scalars().all()]

    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document or raise :class:`DocumentNotFoundError`."""
        row = await self._get_row(collection, doc_id)
        await self._session.delete(row)
        await self._session.flush()
