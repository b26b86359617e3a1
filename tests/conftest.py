#!/usr/bin/env python3
"""
Shared pytest fixtures: in-memory SQLite per test, a controllable clock,
seed helpers for the schedule inputs, and an HTTP client over the ASGI app.
"""

import os
import sys
from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Settings are read at import time
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("REDIS_URL", "")

from practice_booking.core.business import ALL_SLOTS, WEEKDAYS
from practice_booking.db.base import Base
from practice_booking.db.models.appointment import Appointment
from practice_booking.db.models.schedule import (
    BlockedSlot,
    MonthlySchedule,
    ScheduleTemplate,
    TemplateAssignment,
)
from practice_booking.db.models.service import Service
from practice_booking.db.models.temporary_block import TemporaryBlock
from practice_booking.schemas.appointment import AppointmentCreate
from practice_booking.services.availability import AvailabilityEngine
from practice_booking.services.availability_cache import AvailabilityCache
from practice_booking.services.booking import BookingService
from practice_booking.services.temporary_blocks import TemporaryBlockManager

# Test database configuration
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday 2 March 2026, 08:00 in Warsaw
START_OF_TEST = datetime(2026, 3, 2, 7, 0, tzinfo=timezone.utc)
# A Tuesday a week later
DAY = date(2026, 3, 10)
ADMIN_KEY = "test-admin-key"


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: pure logic, no database")
    config.addinivalue_line("markers", "integration: database-backed tests")
    config.addinivalue_line("markers", "api: HTTP-level tests")


class FakeClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, now: datetime = START_OF_TEST):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


def slots_between(start: str, end: str) -> list[str]:
    """Catalogue slots from start to end inclusive."""
    return [t for t in ALL_SLOTS if start <= t <= end]


class Seeder:
    """Writes schedule inputs straight through the ORM."""

    def __init__(self, db: AsyncSession, clock: FakeClock):
        self.db = db
        self.clock = clock

    async def service(self, service_id: str, minutes: int) -> Service:
        service = Service(id=service_id, name=service_id.replace("-", " ").title(), duration_minutes=minutes)
        self.db.add(service)
        await self.db.commit()
        return service

    async def template(
        self,
        times: list[str],
        *,
        days: tuple[str, ...] = WEEKDAYS,
        year: int = DAY.year,
        month: int | None = None,
        name: str = "Standard",
    ) -> ScheduleTemplate:
        template = ScheduleTemplate(name=name, schedule={d: list(times) for d in days})
        self.db.add(template)
        await self.db.flush()
        self.db.add(TemplateAssignment(template_id=template.id, year=year, month=month))
        await self.db.commit()
        return template

    async def monthly_blocks(self, year: int, month: int, entries: list[dict]) -> MonthlySchedule:
        monthly = MonthlySchedule(year=year, month=month, blocked_slots=entries)
        self.db.add(monthly)
        await self.db.commit()
        return monthly

    async def blocked_range(self, **kwargs) -> BlockedSlot:
        blocked = BlockedSlot(**kwargs)
        self.db.add(blocked)
        await self.db.commit()
        return blocked

    async def hold(self, day: date, time: str, session_id: str, *, minutes: int = 10) -> TemporaryBlock:
        now = self.clock.now()
        block = TemporaryBlock(
            date=day, time=time, session_id=session_id, created_at=now, expires_at=now + timedelta(minutes=minutes)
        )
        self.db.add(block)
        await self.db.commit()
        return block


def booking_request(time: str = "10:00", *, day: date = DAY, service_id: str = "individual", **kwargs) -> AppointmentCreate:
    data = {
        "service_id": service_id,
        "preferred_date": day,
        "preferred_time": time,
        "name": "Anna Kowalska",
        "email": "anna@example.com",
    }
    data.update(kwargs)
    return AppointmentCreate(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(db, clock):
    return Seeder(db, clock)


@pytest.fixture
def cache(clock):
    return AvailabilityCache(ttl_seconds=300, redis_url=None, clock=clock)


@pytest.fixture
def engine(db, clock, cache):
    return AvailabilityEngine(db, clock=clock, cache=cache)


@pytest.fixture
def blocks(db, engine, clock):
    return TemporaryBlockManager(db, engine, clock=clock)


@pytest.fixture
def booking(db, engine, clock):
    return BookingService(db, engine, clock=clock)


@pytest_asyncio.fixture
async def standard_day(seed):
    """09:00-12:00 every day of 2026, a 50 and a 90 minute service."""
    await seed.service("individual", 50)
    await seed.service("couples", 90)
    await seed.template(slots_between("09:00", "12:00"))


@pytest_asyncio.fixture
async def client(session_factory, clock, cache, monkeypatch):
    from practice_booking.api.deps import get_cache, get_clock
    from practice_booking.core.config import settings
    from practice_booking.db.session import get_session
    from practice_booking.main import app

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_cache] = lambda: cache
    monkeypatch.setattr(settings, "ADMIN_API_KEY", ADMIN_KEY)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def count_appointments(db: AsyncSession) -> int:
    import sqlalchemy as sa

    res = await db.execute(sa.select(sa.func.count()).select_from(Appointment))
    return res.scalar_one()
