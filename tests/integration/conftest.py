"""Integration test fixtures with a real (in-memory SQLite) database."""

import dataclasses
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workforce_engine.api.app import create_app
from workforce_engine.api.dependencies import get_db_session
from workforce_engine.config import Settings, get_settings
from workforce_engine.database import create_schema
from workforce_engine.models import Client, Officer, Shift, Site, TimeEntry

# One shared connection so every session sees the same in-memory database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday 2024-03-04 00:00 UTC
WEEK_OF = datetime(2024, 3, 4, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for integration tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    """Settings pinned for tests regardless of the surrounding environment."""
    return dataclasses.replace(
        Settings.from_env(),
        database_url=TEST_DATABASE_URL,
        default_pay_rate=None,
        default_bill_rate=None,
        overtime_multiplier=Decimal("1.5"),
        daily_overtime_threshold=Decimal("8"),
        weekly_overtime_threshold=Decimal("40"),
        min_rest_hours=Decimal("8"),
        max_assignment_attempts=3,
        invoice_due_days=30,
    )


@pytest.fixture
def at():
    """UTC datetime relative to Monday 2024-03-04."""

    def _at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
        return WEEK_OF + timedelta(days=day_offset, hours=hour, minutes=minute)

    return _at


@pytest_asyncio.fixture
async def seeded(db_session: AsyncSession) -> dict[str, Any]:
    """Two clients with one site each and two officers."""
    harbor = Client(name="Harbor Logistics", standard_rate=Decimal("45.00"))
    mercy = Client(name="Mercy Hospital", standard_rate=Decimal("52.00"))
    db_session.add_all([harbor, mercy])
    await db_session.flush()

    pier = Site(client_id=harbor.client_id, name="Pier 17", lat=40.7128, lng=-74.0060, radius=200)
    ward = Site(client_id=mercy.client_id, name="East Wing", lat=40.7306, lng=-73.9352, radius=150)
    alice = Officer(
        full_name="Alice Moreno",
        badge_number="B-101",
        base_rate=Decimal("20.00"),
        overtime_rate=Decimal("30.00"),
        deductions=[{"name": "Uniform", "amount": "5.00"}],
    )
    bob = Officer(full_name="Bob Okafor", badge_number="B-102", base_rate=Decimal("22.00"))
    db_session.add_all([pier, ward, alice, bob])
    await db_session.commit()

    return {
        "harbor": harbor,
        "mercy": mercy,
        "pier": pier,
        "ward": ward,
        "alice": alice,
        "bob": bob,
    }


@pytest.fixture
def add_shift(db_session: AsyncSession):
    """Insert a shift and commit."""

    async def _add(
        site_id: UUID,
        start: datetime,
        end: datetime,
        officer_id: UUID | None = None,
        status: str = "published",
        **kwargs: Any,
    ) -> Shift:
        shift = Shift(
            site_id=site_id,
            start_time=start,
            end_time=end,
            officer_id=officer_id,
            status=status,
            **kwargs,
        )
        db_session.add(shift)
        await db_session.commit()
        return shift

    return _add


@pytest.fixture
def add_entry(db_session: AsyncSession):
    """Insert a closed time entry of ``hours`` length and commit."""

    async def _add(
        shift: Shift,
        officer_id: UUID | None,
        clock_in: datetime,
        hours: str,
        status: str = "approved",
    ) -> TimeEntry:
        total = Decimal(hours)
        entry = TimeEntry(
            shift_id=shift.shift_id,
            officer_id=officer_id,
            clock_in=clock_in,
            clock_out=clock_in + timedelta(hours=float(total)),
            total_hours=total,
            status=status,
        )
        db_session.add(entry)
        await db_session.commit()
        return entry

    return _add


@pytest_asyncio.fixture
async def client(session_factory, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test database."""
    app = create_app()

    async def _test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _test_session
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
