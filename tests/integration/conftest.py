"""Integration test fixtures for UAS Ops.

Provides an async HTTP client that drives the FastAPI app against an
in-memory SQLite database with real repository operations.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.services.storage import database


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def async_client(app, db_engine):
    """AsyncClient backed by the in-memory test engine.

    Injects the test engine into the database module so that all routes
    use the same in-memory SQLite with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    database.reset_engine()
