"""Shared pytest fixtures for the UAS Ops test suite.

Provides KML documents, synthetic audio, a fake microphone, and the
in-memory database used across unit and integration tests.
"""

import asyncio
from types import SimpleNamespace

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# KML Fixtures
# ---------------------------------------------------------------------------

KML_NS = "http://www.opengis.net/kml/2.2"


def make_placemark(name: str | None, coordinates: str | None) -> str:
    """Build one Placemark with an optional name and outer ring."""
    name_xml = f"<name>{name}</name>" if name is not None else ""
    if coordinates is None:
        return f"<Placemark>{name_xml}<Point><coordinates>0,0</coordinates></Point></Placemark>"
    return (
        f"<Placemark>{name_xml}<Polygon><outerBoundaryIs><LinearRing>"
        f"<coordinates>{coordinates}</coordinates>"
        f"</LinearRing></outerBoundaryIs></Polygon></Placemark>"
    )


def make_kml(*placemarks: str) -> str:
    """Wrap placemarks in a namespaced KML document."""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<kml xmlns="{KML_NS}"><Document>{"".join(placemarks)}</Document></kml>'
    )


@pytest.fixture
def kml():
    """KML builders: ``kml.document(*placemarks)`` and ``kml.placemark(name, coords)``."""
    return SimpleNamespace(document=make_kml, placemark=make_placemark)


@pytest.fixture
def square_kml():
    """A single closed square ring named 'North Field'."""
    return make_kml(
        make_placemark(
            "North Field",
            "-122.0,37.0,0 -121.9,37.0,0 -121.9,37.1,0 -122.0,37.1,0 -122.0,37.0,0",
        )
    )


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


def sine_wave(frequency: float, sample_rate: int = 48000, duration: float = 0.1, amplitude=0.5):
    """Float32 mono sine wave."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


@pytest.fixture
def sine():
    """The ``sine_wave`` generator."""
    return sine_wave


class FakeMicrophone:
    """In-process stand-in for ``MicrophoneStream``.

    Tests push blocks with ``emit()``; listeners receive them synchronously.
    """

    def __init__(self, sample_rate: int = 48000, channels: int = 1) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.active = True
        self.stop_calls = 0
        self._listeners = []

    def add_listener(self, listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, block: np.ndarray) -> None:
        if block.ndim == 1:
            block = block.reshape(-1, 1)
        for listener in list(self._listeners):
            listener(block)

    def stop(self) -> None:
        self.stop_calls += 1
        self.active = False
        self._listeners.clear()


@pytest.fixture
def fake_mic():
    """A fresh fake microphone at 48 kHz mono."""
    return FakeMicrophone()


@pytest.fixture
def mic_opener(fake_mic):
    """Microphone opener coroutine that grants ``fake_mic`` immediately."""
    calls = []

    async def _open(constraints=None):
        calls.append(constraints)
        return fake_mic

    _open.calls = calls
    return _open


@pytest.fixture
def gated_mic_opener(fake_mic):
    """Opener that waits until ``grant`` is set, to model a slow permission prompt."""
    grant = asyncio.Event()

    async def _open(constraints=None):
        await grant.wait()
        return fake_mic

    _open.grant = grant
    return _open


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from src.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def use_test_db(db_engine):
    """Point ``get_session()`` at the in-memory engine for the test."""
    from src.services.storage import database

    database._engine = db_engine
    database._session_factory = None
    yield db_engine
    database.reset_engine()
