"""Pytest fixtures for HR payroll tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hr_payroll.models import Base, Employee, LeaveBalance, TaxSlab

# In-memory SQLite shared across the single pooled connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OFFICE_TZ = ZoneInfo("Asia/Kolkata")


def office_time(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
) -> datetime:
    """Timezone-aware office-local datetime."""
    return datetime(year, month, day, hour, minute, second, tzinfo=OFFICE_TZ)


class FixedClock:
    """Controllable replacement for the office clock."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def set(self, moment: datetime) -> None:
        self.moment = moment

    def advance(self, **kwargs: float) -> None:
        self.moment += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    """Monday 2026-10-19 10:00 office time."""
    return FixedClock(office_time(2026, 10, 19, 10, 0))


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def tax_slabs(session: AsyncSession) -> dict[str, TaxSlab]:
    """A 0% and a 5% slab."""
    zero = TaxSlab(
        tax_slab_id=uuid4(),
        min_salary=Decimal("0"),
        max_salary=Decimal("300000"),
        tax_percentage=Decimal("0"),
        region="IN",
        effective_date=date(2026, 4, 1),
    )
    five = TaxSlab(
        tax_slab_id=uuid4(),
        min_salary=Decimal("300000"),
        max_salary=Decimal("700000"),
        tax_percentage=Decimal("5"),
        region="IN",
        effective_date=date(2026, 4, 1),
    )
    session.add_all([zero, five])
    await session.flush()
    return {"0%": zero, "5%": five}


@pytest.fixture
def make_employee(session: AsyncSession, tax_slabs: dict[str, TaxSlab]):
    """Factory for employees; defaults to a structured 60000/month package."""
    counter = {"n": 0}

    async def _make(**overrides) -> Employee:
        counter["n"] += 1
        values = {
            "employee_id": uuid4(),
            "first_name": "Asha",
            "last_name": f"Rao{counter['n']}",
            "email": f"employee{counter['n']}@example.com",
            "join_date": date(2025, 1, counter["n"]),
            "salary": Decimal("60000"),
            "basic_salary": Decimal("30000"),
            "hra": Decimal("15000"),
            "special_allowance": Decimal("15000"),
            "tax_slab_id": tax_slabs["0%"].tax_slab_id,
        }
        values.update(overrides)
        employee = Employee(**values)
        session.add(employee)
        await session.flush()
        return employee

    return _make


@pytest.fixture
def set_balance(session: AsyncSession):
    """Create a leave balance row with explicit values."""

    async def _set(
        employee: Employee,
        sick: str = "0",
        casual: str = "0",
        earned: str = "0",
        year: int = 2026,
    ) -> LeaveBalance:
        balance = LeaveBalance(
            employee_id=employee.employee_id,
            year=year,
            sick_leave_balance=Decimal(sick),
            casual_leave_balance=Decimal(casual),
            earned_leave_balance=Decimal(earned),
        )
        session.add(balance)
        await session.flush()
        return balance

    return _set
