"""HR payroll services."""

from hr_payroll.services.accrual_service import AccrualResult, LeaveAccrualService
from hr_payroll.services.attendance_service import AttendanceService, AttendanceStats
from hr_payroll.services.employee_service import EmployeeService
from hr_payroll.services.leave_service import LeaveService, consume_balance
from hr_payroll.services.payroll_run_service import PayrollRunService
from hr_payroll.services.state_machine import (
    LeaveRequestStateMachine,
    PayrollRunStateMachine,
)

__all__ = [
    "AccrualResult",
    "AttendanceService",
    "AttendanceStats",
    "EmployeeService",
    "LeaveAccrualService",
    "LeaveRequestStateMachine",
    "LeaveService",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "consume_balance",
]
