"""HR payroll core: leave ledger, attendance, accrual and payroll engine."""

__version__ = "0.1.0"
