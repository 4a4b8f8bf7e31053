"""Payroll run store: append-only history of processed payroll."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.calculators.engine import PayrollEngine
from hr_payroll.calculators.types import PayrollBreakdown
from hr_payroll.clock import Clock, office_clock
from hr_payroll.errors import (
    InvalidTransitionError,
    NoPayrollRunsError,
    PayrollRunNotFoundError,
)
from hr_payroll.models import PayrollRun, PayrollRunStatus
from hr_payroll.schemas import PayrollRunRequest
from hr_payroll.services.state_machine import PayrollRunStateMachine

logger = logging.getLogger(__name__)


class PayrollRunService:
    """Service for recording and paying payroll runs.

    Operations:
    - process_payroll: compute with PayrollEngine and record, in the caller's
      transaction (nothing is persisted if computation fails)
    - record_run: persist a computed breakdown as a PROCESSED run
    - mark_paid: PROCESSED → PAID, stamping payment_date
    - history / all_history / latest: read-only views
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or office_clock()
        self.engine = PayrollEngine(session)

    async def process_payroll(
        self,
        employee_id: UUID,
        pay_period_start: date,
        pay_period_end: date,
        bonus: Decimal = Decimal("0"),
        manual_deduction: Decimal = Decimal("0"),
    ) -> PayrollRun:
        """Compute and record payroll for one employee and period."""
        request = PayrollRunRequest(
            employee_id=employee_id,
            pay_period_start=pay_period_start,
            pay_period_end=pay_period_end,
            bonus=bonus,
            manual_deduction=manual_deduction,
        )
        breakdown = await self.engine.compute_payroll(
            request.employee_id,
            request.pay_period_start,
            request.pay_period_end,
            bonus=request.bonus,
            manual_deduction=request.manual_deduction,
        )
        return await self.record_run(breakdown)

    async def record_run(self, breakdown: PayrollBreakdown) -> PayrollRun:
        """Persist a computed breakdown as a new PROCESSED run."""
        run = PayrollRun(
            **breakdown.to_run_values(),
            status=PayrollRunStatus.PROCESSED.value,
        )
        self.session.add(run)
        await self.session.flush()
        logger.info(
            "Recorded payroll run %s for employee %s (%s to %s): net %s",
            run.payroll_run_id,
            run.employee_id,
            run.pay_period_start,
            run.pay_period_end,
            run.net_pay,
        )
        return run

    async def mark_paid(self, payroll_run_id: UUID) -> PayrollRun:
        """Transition a run to PAID and stamp the payment date."""
        run = await self.get_run(payroll_run_id)
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PAID)

        # Conditional update so a run is paid exactly once
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == payroll_run_id,
                PayrollRun.status == PayrollRunStatus.PROCESSED.value,
            )
            .values(status=PayrollRunStatus.PAID.value, payment_date=self.clock())
        )
        await self.session.refresh(run)
        if result.rowcount == 0:
            raise InvalidTransitionError(
                run.status, PayrollRunStatus.PAID.value, "run was paid concurrently"
            )

        logger.info("Payroll run %s marked as paid", payroll_run_id)
        return run

    async def get_run(self, payroll_run_id: UUID) -> PayrollRun:
        run = await self.session.get(PayrollRun, payroll_run_id)
        if run is None:
            raise PayrollRunNotFoundError(payroll_run_id)
        return run

    async def history(self, employee_id: UUID) -> list[PayrollRun]:
        """An employee's runs, newest first."""
        result = await self.session.execute(
            select(PayrollRun)
            .where(PayrollRun.employee_id == employee_id)
            .order_by(PayrollRun.created_at.desc(), PayrollRun.pay_period_start.desc())
        )
        return list(result.scalars().all())

    async def all_history(self) -> list[PayrollRun]:
        """Every run, newest first."""
        result = await self.session.execute(
            select(PayrollRun).order_by(
                PayrollRun.created_at.desc(), PayrollRun.pay_period_start.desc()
            )
        )
        return list(result.scalars().all())

    async def latest(self, employee_id: UUID) -> PayrollRun:
        """The employee's most recent run (their latest payslip)."""
        runs = await self.history(employee_id)
        if not runs:
            raise NoPayrollRunsError(employee_id)
        return runs[0]
