"""Monthly leave accrual job."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.clock import Clock, office_clock
from hr_payroll.database import insert_if_absent
from hr_payroll.models import Employee, LeaveAccrualPeriod, LeaveBalance, LeaveType
from hr_payroll.schemas import AccrualPeriod
from hr_payroll.services.leave_service import balance_values

logger = logging.getLogger(__name__)

ACCRUAL_RATES: dict[str, Decimal] = {
    LeaveType.SICK.value: Decimal("1.0"),
    LeaveType.CASUAL.value: Decimal("1.0"),
    LeaveType.EARNED.value: Decimal("1.25"),
}


@dataclass(frozen=True)
class AccrualResult:
    """Outcome of one accrual invocation."""

    year: int
    month: int
    processed: int = 0
    initialized: int = 0
    skipped: bool = False


class LeaveAccrualService:
    """Adds one period's accrual to every employee's leave balances.

    Invoked by an external scheduler once per month. The first accrual of a
    year seeds the balance row with the accrual rates themselves, not the
    default 12/12/15 seed. Each (year, month) is accrued at most once: the
    period marker is written in the same transaction as the increments, so a
    repeated trigger is a no-op.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or office_clock()

    async def accrue(self, year: int | None = None, month: int | None = None) -> AccrualResult:
        """Accrue leave for the given period (default: the current month).

        Raises pydantic.ValidationError for a month outside 1..12.
        """
        today = self.clock().date()
        period = AccrualPeriod(
            year=today.year if year is None else year,
            month=today.month if month is None else month,
        )
        year, month = period.year, period.month
        started = time.monotonic()

        claimed = await insert_if_absent(
            self.session,
            LeaveAccrualPeriod,
            {"year": year, "month": month, "processed": 0, "initialized": 0},
            ["year", "month"],
        )
        if not claimed:
            logger.warning("Leave accrual for %04d-%02d already ran; skipping", year, month)
            return AccrualResult(year=year, month=month, skipped=True)

        logger.info("Starting leave accrual for %04d-%02d", year, month)

        employee_ids = (await self.session.execute(select(Employee.employee_id))).scalars().all()
        balances = {
            b.employee_id: b
            for b in (
                await self.session.execute(
                    select(LeaveBalance)
                    .where(LeaveBalance.year == year)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            ).scalars()
        }

        processed = 0
        initialized = 0
        for employee_id in employee_ids:
            balance = balances.get(employee_id)
            if balance is None:
                self.session.add(
                    LeaveBalance(
                        employee_id=employee_id,
                        year=year,
                        **balance_values(ACCRUAL_RATES),
                    )
                )
                initialized += 1
            else:
                for column, rate in balance_values(ACCRUAL_RATES).items():
                    setattr(balance, column, Decimal(getattr(balance, column)) + rate)
            processed += 1

        marker = (
            await self.session.execute(
                select(LeaveAccrualPeriod).where(
                    LeaveAccrualPeriod.year == year,
                    LeaveAccrualPeriod.month == month,
                )
            )
        ).scalar_one()
        marker.processed = processed
        marker.initialized = initialized
        await self.session.flush()

        logger.info(
            "Finished leave accrual for %04d-%02d. Processed: %d, Initialized: %d. "
            "Duration: %.2fs",
            year,
            month,
            processed,
            initialized,
            time.monotonic() - started,
        )
        return AccrualResult(
            year=year, month=month, processed=processed, initialized=initialized
        )
