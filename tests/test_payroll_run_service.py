"""Tests for payroll processing and the payroll run store."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from hr_payroll.errors import (
    EmployeeNotFoundError,
    ImmutableRecordError,
    InvalidTransitionError,
    PayrollRunNotFoundError,
    TaxSlabNotFoundError,
)
from hr_payroll.models import PayrollRunStatus
from hr_payroll.services.leave_service import LeaveService
from hr_payroll.services.payroll_run_service import PayrollRunService

OCT_START = date(2026, 10, 1)
OCT_END = date(2026, 10, 31)


@pytest.fixture
def payroll(session, clock) -> PayrollRunService:
    return PayrollRunService(session, clock=clock)


class TestProcessPayroll:
    async def test_leave_shortfall_flows_into_payroll(
        self, session, clock, payroll, make_employee, set_balance
    ):
        employee = await make_employee()
        await set_balance(employee)
        leaves = LeaveService(session, clock=clock)
        request = await leaves.create_request(
            employee.employee_id,
            "CASUAL",
            date(2026, 10, 12),
            date(2026, 10, 13),
            Decimal("2"),
        )
        await leaves.set_status(request.leave_request_id, "APPROVED")

        run = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        assert run.status == PayrollRunStatus.PROCESSED.value
        assert run.gross_pay == Decimal("60000.00")
        assert run.lop_days == Decimal("2.00")
        assert run.leave_deduction == Decimal("4000.00")
        assert run.pf_deduction == Decimal("3600.00")
        assert run.professional_tax_deduction == Decimal("200.00")
        assert run.esi_deduction == Decimal("0.00")
        assert run.deductions == Decimal("7800.00")
        assert run.net_pay == Decimal("52200.00")
        assert run.payment_date is None

    async def test_bonus_and_manual_deduction(self, payroll, make_employee, tax_slabs):
        employee = await make_employee(
            basic_salary=Decimal("25000"),
            hra=Decimal("12500"),
            special_allowance=Decimal("12500"),
            tax_slab_id=tax_slabs["5%"].tax_slab_id,
        )

        run = await payroll.process_payroll(
            employee.employee_id,
            OCT_START,
            OCT_END,
            bonus=Decimal("5000"),
            manual_deduction=Decimal("1000"),
        )

        # taxable = 55000 - (3000 + 200 + 1000) = 50800; tax 2540
        assert run.bonus == Decimal("5000.00")
        assert run.gross_pay == Decimal("55000.00")
        assert run.manual_deductions == Decimal("1000.00")
        assert run.income_tax_deduction == Decimal("2540.00")
        assert run.net_pay == Decimal("48260.00")

    async def test_repeated_runs_for_a_period_are_kept(self, payroll, make_employee):
        employee = await make_employee()

        first = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)
        second = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        assert first.payroll_run_id != second.payroll_run_id
        assert len(await payroll.history(employee.employee_id)) == 2

    async def test_failure_persists_nothing(self, payroll, make_employee):
        employee = await make_employee(tax_slab_id=None)

        with pytest.raises(TaxSlabNotFoundError):
            await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        assert await payroll.history(employee.employee_id) == []

    async def test_unknown_employee(self, payroll):
        with pytest.raises(EmployeeNotFoundError):
            await payroll.process_payroll(uuid4(), OCT_START, OCT_END)

    async def test_rejects_negative_bonus(self, payroll, make_employee):
        employee = await make_employee()

        with pytest.raises(ValidationError):
            await payroll.process_payroll(
                employee.employee_id, OCT_START, OCT_END, bonus=Decimal("-1")
            )

    async def test_rejects_inverted_period(self, payroll, make_employee):
        employee = await make_employee()

        with pytest.raises(ValidationError):
            await payroll.process_payroll(employee.employee_id, OCT_END, OCT_START)


class TestMarkPaid:
    async def test_mark_paid_stamps_payment_date(self, payroll, make_employee):
        employee = await make_employee()
        run = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        paid = await payroll.mark_paid(run.payroll_run_id)

        assert paid.status == PayrollRunStatus.PAID.value
        assert paid.payment_date is not None
        assert paid.net_pay == run.net_pay

    async def test_cannot_pay_twice(self, payroll, make_employee):
        employee = await make_employee()
        run = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)
        await payroll.mark_paid(run.payroll_run_id)

        with pytest.raises(InvalidTransitionError):
            await payroll.mark_paid(run.payroll_run_id)

    async def test_unknown_run(self, payroll):
        with pytest.raises(PayrollRunNotFoundError):
            await payroll.mark_paid(uuid4())


class TestImmutability:
    async def test_amounts_cannot_be_edited(self, session, payroll, make_employee):
        employee = await make_employee()
        run = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        run.net_pay = Decimal("1.00")
        with pytest.raises(ImmutableRecordError, match="net_pay"):
            await session.flush()

    async def test_runs_cannot_be_deleted(self, session, payroll, make_employee):
        employee = await make_employee()
        run = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        await session.delete(run)
        with pytest.raises(ImmutableRecordError):
            await session.flush()


class TestQueries:
    async def test_latest_is_most_recent_period(self, payroll, make_employee):
        employee = await make_employee()
        await payroll.process_payroll(
            employee.employee_id, date(2026, 9, 1), date(2026, 9, 30)
        )
        october = await payroll.process_payroll(employee.employee_id, OCT_START, OCT_END)

        latest = await payroll.latest(employee.employee_id)

        assert latest.payroll_run_id == october.payroll_run_id

    async def test_latest_without_runs(self, payroll, make_employee):
        employee = await make_employee()

        with pytest.raises(PayrollRunNotFoundError) as exc_info:
            await payroll.latest(employee.employee_id)

        message = f"No payroll runs found for employee {employee.employee_id}"
        assert str(exc_info.value) == message
        assert exc_info.value.employee_id == employee.employee_id

    async def test_all_history_spans_employees(self, payroll, make_employee):
        first = await make_employee()
        second = await make_employee()
        await payroll.process_payroll(first.employee_id, OCT_START, OCT_END)
        await payroll.process_payroll(second.employee_id, OCT_START, OCT_END)

        runs = await payroll.all_history()

        assert {r.employee_id for r in runs} == {first.employee_id, second.employee_id}
        assert await payroll.history(first.employee_id) != []
