"""
Storage module - Document store backed by async SQLAlchemy.
"""

from src.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from src.services.storage.models_db import Collection, Document
from src.services.storage.repository import DocumentRepository

__all__ = [
    "Base",
    "Collection",
    "Document",
    "DocumentRepository",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
