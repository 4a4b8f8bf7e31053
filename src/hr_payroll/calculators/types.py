"""Type definitions for the payroll calculation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Union
from uuid import UUID

if TYPE_CHECKING:
    from hr_payroll.models import Employee

ZERO = Decimal("0")


@dataclass(frozen=True)
class StructuredCompensation:
    """Compensation split into basic, HRA and special allowance."""

    basic: Decimal
    hra: Decimal
    special_allowance: Decimal

    kind = "structured"

    @property
    def monthly_fixed_pay(self) -> Decimal:
        return self.basic + self.hra + self.special_allowance


@dataclass(frozen=True)
class FlatCompensation:
    """Legacy single-figure salary with no component split."""

    salary: Decimal

    kind = "flat"

    @property
    def basic(self) -> Decimal:
        # No basic component means no provident fund
        return ZERO

    @property
    def hra(self) -> Decimal:
        return ZERO

    @property
    def special_allowance(self) -> Decimal:
        return ZERO

    @property
    def monthly_fixed_pay(self) -> Decimal:
        return self.salary


CompensationStructure = Union[StructuredCompensation, FlatCompensation]


def _as_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def resolve_compensation(employee: Employee) -> CompensationStructure:
    """Resolve an employee row into a single compensation structure.

    The legacy salary is used only when the three components sum to exactly zero.
    """
    structured = StructuredCompensation(
        basic=_as_decimal(employee.basic_salary),
        hra=_as_decimal(employee.hra),
        special_allowance=_as_decimal(employee.special_allowance),
    )
    if structured.monthly_fixed_pay == 0:
        return FlatCompensation(salary=_as_decimal(employee.salary))
    return structured


@dataclass(frozen=True)
class PayrollInputs:
    """Leave and attendance figures gathered for one pay period."""

    lop_days: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    late_events: int = 0


@dataclass(frozen=True)
class PayrollBreakdown:
    """Computed payroll for one employee and pay period.

    Monetary fields are rounded to 2 decimal places.
    """

    employee_id: UUID
    pay_period_start: date
    pay_period_end: date

    basic_pay: Decimal
    hra_pay: Decimal
    special_allowance_pay: Decimal
    monthly_fixed_pay: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    gross_pay: Decimal

    lop_days: Decimal
    leave_deduction: Decimal
    late_events: int
    late_deduction_days: int
    late_deduction: Decimal
    pf_deduction: Decimal
    professional_tax_deduction: Decimal
    esi_deduction: Decimal
    manual_deductions: Decimal
    taxable_income: Decimal
    income_tax_deduction: Decimal
    ewa_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_run_values(self) -> dict[str, Any]:
        """Column values for a PayrollRun row."""
        return {
            "employee_id": self.employee_id,
            "pay_period_start": self.pay_period_start,
            "pay_period_end": self.pay_period_end,
            "basic_pay": self.basic_pay,
            "hra_pay": self.hra_pay,
            "special_allowance_pay": self.special_allowance_pay,
            "overtime_pay": self.overtime_pay,
            "bonus": self.bonus,
            "gross_pay": self.gross_pay,
            "leave_deduction": self.leave_deduction,
            "late_deduction": self.late_deduction,
            "pf_deduction": self.pf_deduction,
            "professional_tax_deduction": self.professional_tax_deduction,
            "esi_deduction": self.esi_deduction,
            "manual_deductions": self.manual_deductions,
            "income_tax_deduction": self.income_tax_deduction,
            "ewa_deductions": self.ewa_deductions,
            "deductions": self.total_deductions,
            "net_pay": self.net_pay,
            "lop_days": self.lop_days,
            "late_deduction_days": self.late_deduction_days,
            "overtime_hours": self.overtime_hours,
        }
