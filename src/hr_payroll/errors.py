"""Domain errors raised by the HR payroll core."""

from __future__ import annotations

from datetime import date
from uuid import UUID


class HRPayrollError(Exception):
    """Base class for all domain errors."""


# ===== Missing records =====


class NotFoundError(HRPayrollError):
    """Raised when a required record does not exist."""

    entity: str = "record"

    def __init__(self, entity_id: UUID | str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity.capitalize()} {entity_id} not found")


class EmployeeNotFoundError(NotFoundError):
    entity = "employee"


class LeaveRequestNotFoundError(NotFoundError):
    entity = "leave request"


class PayrollRunNotFoundError(NotFoundError):
    entity = "payroll run"


class NoPayrollRunsError(PayrollRunNotFoundError):
    """Raised when an employee has no payroll runs yet."""

    def __init__(self, employee_id: UUID):
        self.entity_id = employee_id
        self.employee_id = employee_id
        HRPayrollError.__init__(self, f"No payroll runs found for employee {employee_id}")


class NoCheckInError(NotFoundError):
    """Raised on check-out when the employee has no record for today."""

    entity = "attendance record"

    def __init__(self, employee_id: UUID, work_date: date):
        self.employee_id = employee_id
        self.work_date = work_date
        HRPayrollError.__init__(
            self, f"No check-in record found for employee {employee_id} on {work_date}"
        )


# ===== Invalid state =====


class InvalidStateError(HRPayrollError):
    """Raised when an operation is not allowed in the current state."""


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class AlreadyCheckedInError(InvalidStateError):
    """Raised when an employee checks in twice on the same local day."""

    def __init__(self, employee_id: UUID, work_date: date):
        self.employee_id = employee_id
        self.work_date = work_date
        super().__init__(f"Employee {employee_id} already checked in on {work_date}")


class ImmutableRecordError(InvalidStateError):
    """Raised when an append-only or frozen record is modified."""


# ===== Configuration =====


class ConfigurationError(HRPayrollError):
    """Raised when reference data needed for a computation is missing."""


class TaxSlabNotFoundError(ConfigurationError):
    """Raised when an employee's tax slab cannot be resolved."""

    def __init__(self, employee_id: UUID, tax_slab_id: UUID | None):
        self.employee_id = employee_id
        self.tax_slab_id = tax_slab_id
        super().__init__(
            f"Tax slab {tax_slab_id} not found for employee {employee_id}"
        )
