"""Payroll calculation engine."""

from hr_payroll.calculators.engine import CalculationContext, PayrollEngine
from hr_payroll.calculators.types import (
    CompensationStructure,
    FlatCompensation,
    PayrollBreakdown,
    PayrollInputs,
    StructuredCompensation,
    resolve_compensation,
)

__all__ = [
    "CalculationContext",
    "CompensationStructure",
    "FlatCompensation",
    "PayrollBreakdown",
    "PayrollEngine",
    "PayrollInputs",
    "StructuredCompensation",
    "resolve_compensation",
]
