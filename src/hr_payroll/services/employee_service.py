"""Employee records, compensation edits and the salary revision trail."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.cache import EMPLOYEE_LIST_KEY, EmployeeCache, employee_key
from hr_payroll.errors import EmployeeNotFoundError
from hr_payroll.models import Employee, SalaryRevision
from hr_payroll.schemas import CompensationUpdate, EmployeeCreate, EmployeeSnapshot

logger = logging.getLogger(__name__)


class EmployeeService:
    """Service for employee reads and HR edits.

    Reads go through the optional cache; every mutation invalidates both the
    employee's entry and the list entry before returning.
    """

    def __init__(self, session: AsyncSession, cache: EmployeeCache | None = None):
        self.session = session
        self.cache = cache

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        employee = Employee(**data.model_dump())
        self.session.add(employee)
        await self.session.flush()
        self._invalidate(employee.employee_id)
        return employee

    async def get_employee(self, employee_id: UUID) -> EmployeeSnapshot:
        """Get an employee, served from cache when possible."""
        key = employee_key(employee_id)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        snapshot = EmployeeSnapshot.model_validate(employee)
        if self.cache is not None:
            self.cache.set(key, snapshot)
        return snapshot

    async def list_employees(self) -> list[EmployeeSnapshot]:
        """Non-admin employees, most recently joined first."""
        if self.cache is not None:
            cached = self.cache.get(EMPLOYEE_LIST_KEY)
            if cached is not None:
                return cached

        result = await self.session.execute(
            select(Employee)
            .where(Employee.role != "ADMIN")
            .order_by(Employee.join_date.desc(), Employee.last_name, Employee.first_name)
        )
        snapshots = [EmployeeSnapshot.model_validate(e) for e in result.scalars().all()]
        if self.cache is not None:
            self.cache.set(EMPLOYEE_LIST_KEY, snapshots)
        return snapshots

    async def update_compensation(
        self,
        employee_id: UUID,
        update: CompensationUpdate,
        actor_id: UUID | None = None,
    ) -> Employee:
        """Apply a compensation edit.

        A SalaryRevision is appended only when ``salary`` actually changes;
        its old_salary is the value read under the row lock.
        """
        result = await self.session.execute(
            select(Employee)
            .where(Employee.employee_id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        old_salary = Decimal(employee.salary)
        employee.salary = update.salary
        employee.basic_salary = update.basic_salary
        employee.hra = update.hra
        employee.special_allowance = update.special_allowance

        if old_salary != update.salary:
            self.session.add(
                SalaryRevision(
                    employee_id=employee_id,
                    old_salary=old_salary,
                    new_salary=update.salary,
                    changed_by=actor_id,
                )
            )
            logger.info(
                "Salary for employee %s revised from %s to %s", employee_id, old_salary, update.salary
            )

        await self.session.flush()
        self._invalidate(employee_id)
        return employee

    async def salary_history(self, employee_id: UUID) -> list[SalaryRevision]:
        """Salary revisions for an employee, newest first."""
        result = await self.session.execute(
            select(SalaryRevision)
            .where(SalaryRevision.employee_id == employee_id)
            .order_by(SalaryRevision.change_date.desc())
        )
        return list(result.scalars().all())

    def _invalidate(self, employee_id: UUID) -> None:
        if self.cache is not None:
            self.cache.delete(employee_key(employee_id), EMPLOYEE_LIST_KEY)
