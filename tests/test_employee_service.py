"""Tests for employee reads, compensation edits and the employee cache."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from hr_payroll.cache import EMPLOYEE_LIST_KEY, InMemoryEmployeeCache, employee_key
from hr_payroll.config import Settings
from hr_payroll.errors import EmployeeNotFoundError, ImmutableRecordError
from hr_payroll.schemas import CompensationUpdate, EmployeeCreate
from hr_payroll.services.employee_service import EmployeeService


class FakeTimer:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def cache() -> InMemoryEmployeeCache:
    return InMemoryEmployeeCache(ttl=3600)


@pytest.fixture
def employees(session, cache) -> EmployeeService:
    return EmployeeService(session, cache=cache)


class TestCreateAndRead:
    async def test_create_employee(self, employees, tax_slabs):
        employee = await employees.create_employee(
            EmployeeCreate(
                first_name="Meera",
                last_name="Iyer",
                email="meera@example.com",
                basic_salary=Decimal("20000"),
                hra=Decimal("8000"),
                special_allowance=Decimal("2000"),
                tax_slab_id=tax_slabs["0%"].tax_slab_id,
            )
        )

        snapshot = await employees.get_employee(employee.employee_id)

        assert snapshot.employee_id == employee.employee_id
        assert snapshot.email == "meera@example.com"
        assert snapshot.role == "EMPLOYEE"
        assert snapshot.basic_salary == Decimal("20000")

    def test_create_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            EmployeeCreate(first_name="A", last_name="B", email="ab@example.com", role="CEO")

    async def test_get_unknown_employee(self, employees):
        with pytest.raises(EmployeeNotFoundError):
            await employees.get_employee(uuid4())

    async def test_reads_are_cached(self, employees, cache, make_employee):
        employee = await make_employee()

        first = await employees.get_employee(employee.employee_id)

        assert cache.get(employee_key(employee.employee_id)) is first
        assert await employees.get_employee(employee.employee_id) is first

    async def test_list_excludes_admins(self, employees, make_employee):
        staff = await make_employee()
        await make_employee(role="ADMIN")

        listed = await employees.list_employees()

        assert [e.employee_id for e in listed] == [staff.employee_id]


class TestUpdateCompensation:
    async def test_salary_change_appends_revision(self, employees, make_employee):
        employee = await make_employee()
        actor = await make_employee(role="ADMIN")

        await employees.update_compensation(
            employee.employee_id,
            CompensationUpdate(
                salary=Decimal("72000"),
                basic_salary=Decimal("36000"),
                hra=Decimal("18000"),
                special_allowance=Decimal("18000"),
            ),
            actor_id=actor.employee_id,
        )

        history = await employees.salary_history(employee.employee_id)
        assert len(history) == 1
        assert history[0].old_salary == Decimal("60000")
        assert history[0].new_salary == Decimal("72000")
        assert history[0].changed_by == actor.employee_id
        assert history[0].change_date is not None

    async def test_component_only_change_has_no_revision(self, employees, make_employee):
        employee = await make_employee()

        updated = await employees.update_compensation(
            employee.employee_id,
            CompensationUpdate(
                salary=Decimal("60000"),
                basic_salary=Decimal("40000"),
                hra=Decimal("10000"),
                special_allowance=Decimal("10000"),
            ),
        )

        assert updated.basic_salary == Decimal("40000")
        assert await employees.salary_history(employee.employee_id) == []

    async def test_update_invalidates_cache(self, employees, cache, make_employee):
        employee = await make_employee()
        await employees.get_employee(employee.employee_id)
        await employees.list_employees()

        await employees.update_compensation(
            employee.employee_id, CompensationUpdate(salary=Decimal("65000"))
        )

        assert cache.get(employee_key(employee.employee_id)) is None
        assert cache.get(EMPLOYEE_LIST_KEY) is None
        snapshot = await employees.get_employee(employee.employee_id)
        assert snapshot.salary == Decimal("65000")

    async def test_unknown_employee(self, employees):
        with pytest.raises(EmployeeNotFoundError):
            await employees.update_compensation(
                uuid4(), CompensationUpdate(salary=Decimal("1"))
            )

    async def test_revisions_are_append_only(self, session, employees, make_employee):
        employee = await make_employee()
        await employees.update_compensation(
            employee.employee_id, CompensationUpdate(salary=Decimal("61000"))
        )
        revision = (await employees.salary_history(employee.employee_id))[0]

        revision.new_salary = Decimal("99999")
        with pytest.raises(ImmutableRecordError):
            await session.flush()


class TestInMemoryCache:
    def test_entries_expire(self):
        timer = FakeTimer()
        cache = InMemoryEmployeeCache(ttl=60, clock=timer)
        cache.set("k", "v")

        timer.now = 59.9
        assert cache.get("k") == "v"

        timer.now = 60.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self):
        timer = FakeTimer()
        cache = InMemoryEmployeeCache(ttl=60, clock=timer)
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)

        timer.now = 10
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_ttl_from_settings(self):
        settings = Settings(
            database_url="sqlite+aiosqlite:///:memory:",
            office_timezone="Asia/Kolkata",
            employee_cache_ttl=120,
            log_level="INFO",
        )

        assert InMemoryEmployeeCache.from_settings(settings).ttl == 120

    def test_delete_many(self):
        cache = InMemoryEmployeeCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        cache.delete("a", "b", "missing")

        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0
