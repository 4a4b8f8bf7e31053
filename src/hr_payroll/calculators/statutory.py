"""Fixed national payroll structure: statutory rates and deductions."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from hr_payroll.calculators.types import ZERO

OUTPUT_PRECISION = Decimal("0.01")

DAYS_IN_MONTH = Decimal("30")
HOURS_PER_DAY = Decimal("8")
OVERTIME_MULTIPLIER = Decimal("1.5")

# Late events above the grace period; every LATE_EVENTS_PER_DAY costs one day
LATE_GRACE_MINUTES = 15
LATE_EVENTS_PER_DAY = 3

PF_RATE = Decimal("0.12")

# (gross strictly above, amount), checked highest first
PROFESSIONAL_TAX_TIERS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("20000"), Decimal("200")),
    (Decimal("15000"), Decimal("150")),
)

ESI_RATE = Decimal("0.0075")
ESI_GROSS_CEILING = Decimal("21000")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places."""
    return amount.quantize(OUTPUT_PRECISION, rounding=ROUND_HALF_UP)


def provident_fund(basic: Decimal) -> Decimal:
    """Provident fund: 12% of basic salary."""
    return basic * PF_RATE


def professional_tax(gross: Decimal) -> Decimal:
    """Professional tax tiered on gross pay."""
    for threshold, amount in PROFESSIONAL_TAX_TIERS:
        if gross > threshold:
            return amount
    return ZERO


def employee_state_insurance(gross: Decimal) -> Decimal:
    """ESI: 0.75% of gross, only while gross is at or below the ceiling."""
    if gross <= ESI_GROSS_CEILING:
        return gross * ESI_RATE
    return ZERO


def income_tax(taxable_income: Decimal, tax_percentage: Decimal) -> Decimal:
    """Flat slab income tax on taxable income floored at zero."""
    return max(ZERO, taxable_income) * tax_percentage / 100


def late_deduction_days(late_events: int) -> int:
    """Whole days withheld for late arrivals."""
    return late_events // LATE_EVENTS_PER_DAY
