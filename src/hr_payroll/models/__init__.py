"""ORM models."""

from hr_payroll.models.attendance import AttendanceRecord
from hr_payroll.models.base import Base, TimestampMixin
from hr_payroll.models.employee import Employee, SalaryRevision, TaxSlab
from hr_payroll.models.leave import (
    BALANCE_COLUMNS,
    LeaveAccrualPeriod,
    LeaveBalance,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from hr_payroll.models.payroll import (
    PAYROLL_RUN_MUTABLE_COLUMNS,
    PayrollRun,
    PayrollRunStatus,
)

__all__ = [
    "AttendanceRecord",
    "BALANCE_COLUMNS",
    "Base",
    "Employee",
    "LeaveAccrualPeriod",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "PAYROLL_RUN_MUTABLE_COLUMNS",
    "PayrollRun",
    "PayrollRunStatus",
    "SalaryRevision",
    "TaxSlab",
    "TimestampMixin",
]
