"""Payroll calculation engine - main orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.calculators import statutory
from hr_payroll.calculators.types import (
    ZERO,
    CompensationStructure,
    PayrollBreakdown,
    PayrollInputs,
    resolve_compensation,
)
from hr_payroll.errors import EmployeeNotFoundError, TaxSlabNotFoundError
from hr_payroll.models import (
    AttendanceRecord,
    Employee,
    LeaveRequest,
    LeaveStatus,
    TaxSlab,
)


@dataclass(frozen=True)
class CalculationContext:
    """Everything the pure calculation needs for one employee and period."""

    employee_id: UUID
    period_start: date
    period_end: date
    compensation: CompensationStructure
    tax_percentage: Decimal
    inputs: PayrollInputs
    bonus: Decimal = ZERO
    manual_deduction: Decimal = ZERO


class PayrollEngine:
    """Monthly payroll calculation engine.

    Calculation pipeline (stable order per employee):
    1) Resolve tax slab (missing slab is a configuration error)
    2) Sum LOP days of approved leaves inside the period
    3) Sum overtime hours and count late events from attendance
    4) Derive per-day and hourly rates from a fixed 30-day month
    5) Gross = fixed pay + overtime + bonus
    6) Statutory deductions (PF, PT, ESI), LOP, late and manual deductions
    7) Income tax on gross less pre-tax deductions
    8) Net = gross - total deductions

    Internal arithmetic keeps full Decimal precision; every monetary output
    is rounded to 2 decimal places once, at the end.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def compute_payroll(
        self,
        employee: Employee | UUID,
        period_start: date,
        period_end: date,
        bonus: Decimal = ZERO,
        manual_deduction: Decimal = ZERO,
    ) -> PayrollBreakdown:
        """Compute the payroll breakdown for one employee and pay period."""
        if not isinstance(employee, Employee):
            employee = await self._load_employee(employee)

        tax_slab = await self._get_tax_slab(employee)
        ctx = CalculationContext(
            employee_id=employee.employee_id,
            period_start=period_start,
            period_end=period_end,
            compensation=resolve_compensation(employee),
            tax_percentage=Decimal(tax_slab.tax_percentage),
            inputs=await self.gather_inputs(
                employee.employee_id, period_start, period_end
            ),
            bonus=Decimal(bonus),
            manual_deduction=Decimal(manual_deduction),
        )
        return self.calculate(ctx)

    async def gather_inputs(
        self, employee_id: UUID, period_start: date, period_end: date
    ) -> PayrollInputs:
        """Collect LOP days, overtime hours and late events for a period."""
        lop_days = await self.session.scalar(
            select(func.coalesce(func.sum(LeaveRequest.lop_days), 0)).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date >= period_start,
                LeaveRequest.end_date <= period_end,
            )
        )

        result = await self.session.execute(
            select(AttendanceRecord.overtime_hours, AttendanceRecord.late_minutes).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date >= period_start,
                AttendanceRecord.work_date <= period_end,
            )
        )
        overtime_hours = ZERO
        late_events = 0
        for overtime, late_minutes in result.all():
            overtime_hours += Decimal(overtime or 0)
            if (late_minutes or 0) > statutory.LATE_GRACE_MINUTES:
                late_events += 1

        return PayrollInputs(
            lop_days=Decimal(lop_days or 0),
            overtime_hours=overtime_hours,
            late_events=late_events,
        )

    @staticmethod
    def calculate(ctx: CalculationContext) -> PayrollBreakdown:
        """Pure payroll calculation from a fully-resolved context."""
        comp = ctx.compensation
        inputs = ctx.inputs
        fixed_pay = comp.monthly_fixed_pay

        per_day_pay = fixed_pay / statutory.DAYS_IN_MONTH
        hourly_rate = per_day_pay / statutory.HOURS_PER_DAY

        late_days = statutory.late_deduction_days(inputs.late_events)
        late_deduction = late_days * per_day_pay
        overtime_pay = inputs.overtime_hours * hourly_rate * statutory.OVERTIME_MULTIPLIER
        leave_deduction = inputs.lop_days * per_day_pay

        gross = fixed_pay + overtime_pay + ctx.bonus

        pf = statutory.provident_fund(comp.basic)
        pt = statutory.professional_tax(gross)
        esi = statutory.employee_state_insurance(gross)

        pre_tax_total = (
            leave_deduction + late_deduction + pf + pt + esi + ctx.manual_deduction
        )
        taxable_income = max(ZERO, gross - pre_tax_total)
        tax = statutory.income_tax(taxable_income, ctx.tax_percentage)

        # Earned-wage-access advances are not tracked yet
        ewa = ZERO

        total_deductions = pre_tax_total + tax + ewa
        net = gross - total_deductions

        cents = statutory.round_to_cents
        return PayrollBreakdown(
            employee_id=ctx.employee_id,
            pay_period_start=ctx.period_start,
            pay_period_end=ctx.period_end,
            basic_pay=cents(comp.basic),
            hra_pay=cents(comp.hra),
            special_allowance_pay=cents(comp.special_allowance),
            monthly_fixed_pay=cents(fixed_pay),
            overtime_hours=cents(inputs.overtime_hours),
            overtime_pay=cents(overtime_pay),
            bonus=cents(ctx.bonus),
            gross_pay=cents(gross),
            lop_days=cents(inputs.lop_days),
            leave_deduction=cents(leave_deduction),
            late_events=inputs.late_events,
            late_deduction_days=late_days,
            late_deduction=cents(late_deduction),
            pf_deduction=cents(pf),
            professional_tax_deduction=cents(pt),
            esi_deduction=cents(esi),
            manual_deductions=cents(ctx.manual_deduction),
            taxable_income=cents(taxable_income),
            income_tax_deduction=cents(tax),
            ewa_deductions=cents(ewa),
            total_deductions=cents(total_deductions),
            net_pay=cents(net),
        )

    # === Data Loading Methods ===

    async def _load_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    async def _get_tax_slab(self, employee: Employee) -> TaxSlab:
        if employee.tax_slab_id is None:
            raise TaxSlabNotFoundError(employee.employee_id, None)
        tax_slab = await self.session.get(TaxSlab, employee.tax_slab_id)
        if tax_slab is None:
            raise TaxSlabNotFoundError(employee.employee_id, employee.tax_slab_id)
        return tax_slab
