"""Pytest configuration and fixtures for SiteCheck tests.

Provides an in-memory database, the persistence adapter over it and helpers
to seed a project's floor/unit/room structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sitecheck.checklists import ChecklistStore
from sitecheck.config import reset_config
from sitecheck.db.models import Base
from sitecheck.errors import PersistenceError
from sitecheck.models import Floor, Room, Unit
from sitecheck.services.persistence import PersistenceService, Table
from sitecheck.services.sqlalchemy_store import SQLAlchemyPersistence


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def test_project_id() -> str:
    """Test project ID."""
    return "tower-a"


@pytest_asyncio.fixture()
async def session_factory():
    """In-memory database shared by every session of one test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest.fixture
def store(session_factory) -> SQLAlchemyPersistence:
    return SQLAlchemyPersistence(session_factory)


@pytest.fixture
def checklists(store) -> ChecklistStore:
    return ChecklistStore(store)


@dataclass
class SeededProject:
    project_id: str
    floors: list[Floor] = field(default_factory=list)
    units: list[Unit] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)

    def units_of(self, floor: Floor) -> list[Unit]:
        return [unit for unit in self.units if unit.floor_id == floor.id]


@pytest.fixture
def seed_project(store, test_project_id):
    """Return a coroutine that registers floors, units and rooms.

    ``seed_project(floors=2, units_per_floor=3, rooms_per_unit=0)`` creates
    "Floor 1".."Floor 2", each with "Unit 101".. style units.
    """

    async def _seed(
        floors: int = 1,
        units_per_floor: int = 0,
        rooms_per_unit: int = 0,
        project_id: str | None = None,
    ) -> SeededProject:
        seeded = SeededProject(project_id=project_id or test_project_id)
        for f in range(1, floors + 1):
            floor = Floor(project_id=seeded.project_id, name=f"Floor {f}", order=f)
            seeded.floors.append(floor)
            for u in range(1, units_per_floor + 1):
                unit = Unit(floor_id=floor.id, name=f"Unit {f}{u:02d}", order=u)
                seeded.units.append(unit)
                for r in range(1, rooms_per_unit + 1):
                    seeded.rooms.append(Room(unit_id=unit.id, name=f"Room {f}{u:02d}-{r}"))

        await store.insert(Table.FLOORS, [floor.model_dump() for floor in seeded.floors])
        await store.insert(Table.UNITS, [unit.model_dump() for unit in seeded.units])
        await store.insert(Table.ROOMS, [room.model_dump() for room in seeded.rooms])
        return seeded

    return _seed


class FlakyStore(PersistenceService):
    """Delegates to a real store and fails chosen verification-record inserts.

    ``fail_on`` holds 1-based insert call numbers; ``error`` is raised on them.
    """

    def __init__(self, inner: PersistenceService, fail_on=(), error: Exception | None = None):
        self.inner = inner
        self.fail_on = set(fail_on)
        self.error = error or PersistenceError("connection reset", table="verification_records")
        self.record_inserts = 0
        self.batch_sizes: list[int] = []

    async def select(self, table, filters=None, order_by=None):
        return await self.inner.select(table, filters, order_by)

    async def insert(self, table, rows):
        if Table(table) is Table.VERIFICATION_RECORDS:
            self.record_inserts += 1
            self.batch_sizes.append(len(rows))
            if self.record_inserts in self.fail_on:
                raise self.error
        return await self.inner.insert(table, rows)

    async def update(self, table, values, filters):
        return await self.inner.update(table, values, filters)

    async def delete(self, table, filters):
        return await self.inner.delete(table, filters)


@pytest.fixture
def flaky_store(store):
    def _make(fail_on=(), error: Exception | None = None) -> FlakyStore:
        return FlakyStore(store, fail_on=fail_on, error=error)

    return _make
