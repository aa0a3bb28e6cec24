"""Pytest configuration and shared fixtures."""

import copy
import os
import tempfile
from pathlib import Path

# Point the app at a throwaway SQLite file BEFORE importing it
_TEST_DB_DIR = tempfile.mkdtemp(prefix="viberide-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_DIR}/app.db")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from viberide.core.database import Base
from viberide.database import models  # noqa: F401
from viberide.database.models import Note

USER_ID = "U1"
OTHER_USER_ID = "U2"
NOTE_ID = "N1"


LOOP_ROUTE = {
    "type": "FeatureCollection",
    "properties": {
        "title": "Loop",
        "total_distance_km": 10.0,
        "total_duration_h": 1.0,
    },
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [8.5417, 47.3769]},
            "properties": {"name": "Zurich", "type": "waypoint"},
        }
    ],
}

ALPS_ROUTE = {
    "type": "FeatureCollection",
    "properties": {
        "title": "Alpine Passes",
        "total_distance_km": 412.5,
        "total_duration_h": 9.5,
        "highlights": ["Stelvio Pass", "Lake Como"],
        "days": 2,
    },
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [9.19, 45.4642]},
            "properties": {"name": "Milan", "description": "Start at the Duomo", "type": "waypoint"},
        },
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [10.4534, 46.5286]},
            "properties": {"name": "Stelvio Pass", "type": "poi"},
        },
        {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[9.19, 45.4642], [9.2572, 45.9931], [10.4534, 46.5286]],
            },
            "properties": {
                "name": "Day 1: Milan to Stelvio",
                "description": "Lakeside roads then switchbacks",
                "day": 1,
                "distance_km": 250,
                "duration_h": 5.5,
            },
        },
        {
            "type": "Feature",
            "geometry": {
                "type": "LineString",
                "coordinates": [[10.4534, 46.5286], [9.19, 45.4642]],
            },
            "properties": None,
        },
    ],
}


@pytest.fixture
def loop_route() -> dict:
    """Single-waypoint route titled "Loop"."""
    return copy.deepcopy(LOOP_ROUTE)


@pytest.fixture
def alps_route() -> dict:
    """Two-day route with waypoints, a POI, segments and highlights."""
    return copy.deepcopy(ALPS_ROUTE)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "viberide.db"


@pytest.fixture
async def engine(db_path: Path):
    """File-backed SQLite engine with all tables created.

    NullPool gives every session its own connection, so concurrent sessions
    contend on the database the way separate request handlers would.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def notes(session_maker):
    """Notes N1 and N2 owned by U1, N3 owned by U2, and a deleted note for U1."""
    async with session_maker() as session:
        session.add_all(
            [
                Note(id=NOTE_ID, user_id=USER_ID, title="Alps weekend"),
                Note(id="N2", user_id=USER_ID, title="Coast run"),
                Note(id="N3", user_id=OTHER_USER_ID, title="Someone else's trip"),
                Note(id="N-deleted", user_id=USER_ID, title="Old", deleted_at=models.utcnow()),
            ]
        )
        await session.commit()
