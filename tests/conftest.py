"""Pytest fixtures for shift payroll tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shift_payroll.models import Base, Employee, RateHistoryEntry, Shift, Tenant

# In-memory SQLite shared across the connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Week of Monday 2024-03-11 (Europe/London is on GMT, so local == UTC)
WEEK_START = date(2024, 3, 11)
WEEK_END = date(2024, 3, 17)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Aware UTC datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


DEFAULT_TENANT_SETTINGS = {
    "pay_period": {"type": "weekly", "week_starts_on": "monday"},
    "overtime": {"overtime_enabled": False},
}


@pytest.fixture
def tenant_factory(session: AsyncSession):
    """Create extra tenants; Europe/London and weekly settings unless given."""

    async def create(name: str, timezone: str | None = "Europe/London", settings=None) -> Tenant:
        tenant = Tenant(
            tenant_id=uuid4(),
            name=name,
            timezone=timezone,
            settings=dict(DEFAULT_TENANT_SETTINGS) if settings is None else settings,
        )
        session.add(tenant)
        await session.flush()
        return tenant

    return create


@pytest_asyncio.fixture
async def tenant(tenant_factory) -> Tenant:
    """Tenant on a Monday-start weekly scheme in Europe/London."""
    return await tenant_factory("Harbour Cafe")


async def add_employee(
    session: AsyncSession,
    tenant: Tenant,
    first_name: str,
    last_name: str | None = None,
    employee_number: str = "",
    **overtime,
) -> Employee:
    employee = Employee(
        employee_id=uuid4(),
        tenant_id=tenant.tenant_id,
        first_name=first_name,
        last_name=last_name,
        employee_number=employee_number,
        **overtime,
    )
    session.add(employee)
    await session.flush()
    return employee


async def add_rate(
    session: AsyncSession,
    employee: Employee,
    hourly_rate: str,
    effective_date: date,
) -> RateHistoryEntry:
    entry = RateHistoryEntry(
        rate_id=uuid4(),
        tenant_id=employee.tenant_id,
        employee_id=employee.employee_id,
        hourly_rate=Decimal(hourly_rate),
        effective_date=effective_date,
    )
    session.add(entry)
    await session.flush()
    return entry


async def add_shift(
    session: AsyncSession,
    employee: Employee,
    start: datetime,
    hours: float,
    break_minutes: int = 0,
    status: str = "scheduled",
) -> Shift:
    shift = Shift(
        shift_id=uuid4(),
        tenant_id=employee.tenant_id,
        employee_id=employee.employee_id,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        break_minutes=break_minutes,
        status=status,
    )
    session.add(shift)
    await session.flush()
    return shift


@dataclass
class PayrollWeek:
    """Seeded week: two payable employees and one without a rate."""

    tenant: Tenant
    alice: Employee
    bob: Employee
    carol: Employee
    shift_ids: dict[str, list[UUID]] = field(default_factory=dict)


@pytest_asyncio.fixture
async def payroll_week(session: AsyncSession, tenant: Tenant) -> PayrollWeek:
    """Shifts for the week of 2024-03-11.

    - Alice: 5 x 9h, overtime after 40h at 1.5x, rate 20.00 => 950.00
    - Bob: 2 x 8.5h with 30 min breaks, no overtime, rate 15.00 => 240.00
      (plus a cancelled shift that must be ignored)
    - Carol: one 4h shift and no rate => skipped
    """
    alice = await add_employee(
        session,
        tenant,
        "Alice",
        "Able",
        employee_number="E001",
        overtime_enabled=True,
        contracted_weekly_hours=Decimal("40"),
        overtime_rule_type="multiplier",
        overtime_multiplier=Decimal("1.5"),
    )
    bob = await add_employee(session, tenant, "Bob", "Baker", employee_number="E002")
    carol = await add_employee(session, tenant, "Carol", "Cole", employee_number="E003")

    await add_rate(session, alice, "18.00", date(2024, 1, 1))
    await add_rate(session, alice, "20.00", date(2024, 3, 1))
    await add_rate(session, alice, "25.00", date(2024, 4, 1))
    await add_rate(session, bob, "15.00", date(2024, 1, 1))

    week = PayrollWeek(tenant=tenant, alice=alice, bob=bob, carol=carol)
    week.shift_ids = {"alice": [], "bob": [], "carol": []}

    for offset in range(5):
        shift = await add_shift(session, alice, utc(2024, 3, 11 + offset, 8), 9)
        week.shift_ids["alice"].append(shift.shift_id)
    # Starts after the period end
    await add_shift(session, alice, utc(2024, 3, 18, 0, 30), 4)

    for day in (12, 13):
        shift = await add_shift(session, bob, utc(2024, 3, day, 9), 8.5, break_minutes=30)
        week.shift_ids["bob"].append(shift.shift_id)
    await add_shift(session, bob, utc(2024, 3, 14, 9), 10, status="cancelled")

    shift = await add_shift(session, carol, utc(2024, 3, 15, 10), 4)
    week.shift_ids["carol"].append(shift.shift_id)

    return week


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-03-20 12:00 UTC."""
    return lambda: utc(2024, 3, 20, 12)
