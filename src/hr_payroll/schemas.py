"""Pydantic schemas validating input at the core's boundary."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hr_payroll.models import LeaveType


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeCreate(BaseModel):
    """Schema for creating an employee."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None
    role: str = Field(default="EMPLOYEE", pattern="^(EMPLOYEE|ADMIN)$")
    join_date: date | None = None
    salary: Decimal = Field(default=Decimal("0"), ge=0)
    basic_salary: Decimal = Field(default=Decimal("0"), ge=0)
    hra: Decimal = Field(default=Decimal("0"), ge=0)
    special_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    tax_slab_id: UUID | None = None


class CompensationUpdate(BaseModel):
    """Schema for an HR compensation edit."""

    salary: Decimal = Field(ge=0)
    basic_salary: Decimal = Field(default=Decimal("0"), ge=0)
    hra: Decimal = Field(default=Decimal("0"), ge=0)
    special_allowance: Decimal = Field(default=Decimal("0"), ge=0)


class EmployeeSnapshot(BaseModel):
    """Cacheable read view of an employee."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    employee_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    role: str
    status: str
    join_date: date | None = None
    salary: Decimal
    basic_salary: Decimal
    hra: Decimal
    special_allowance: Decimal
    tax_slab_id: UUID | None = None


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveRequestCreate(BaseModel):
    """Schema for an employee's leave request."""

    employee_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_count: Decimal = Field(gt=0)
    reason: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> LeaveRequestCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollRunRequest(BaseModel):
    """Schema for running payroll for one employee."""

    employee_id: UUID
    pay_period_start: date
    pay_period_end: date
    bonus: Decimal = Field(default=Decimal("0"), ge=0)
    manual_deduction: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def check_period(self) -> PayrollRunRequest:
        if self.pay_period_end < self.pay_period_start:
            raise ValueError("pay_period_end must not be before pay_period_start")
        return self


# ============================================================================
# Accrual schemas
# ============================================================================


class AccrualPeriod(BaseModel):
    """Calendar month a leave accrual run applies to."""

    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)
