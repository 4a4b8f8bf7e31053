"""Attendance tracking: daily check-in/check-out and monthly presence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.clock import Clock, office_clock
from hr_payroll.database import insert_if_absent
from hr_payroll.errors import (
    AlreadyCheckedInError,
    EmployeeNotFoundError,
    InvalidStateError,
    NoCheckInError,
)
from hr_payroll.models import AttendanceRecord, Employee

logger = logging.getLogger(__name__)

WORK_START = time(9, 30)
STANDARD_WORK_HOURS = Decimal("9")
PRESENT = "PRESENT"

HOURS_PRECISION = Decimal("0.01")
PERCENT_PRECISION = Decimal("0.1")


class TodayStatus(str, Enum):
    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


@dataclass(frozen=True)
class AttendanceStats:
    """Presence for one employee in the current month."""

    present_days: int
    working_days: int
    percentage: Decimal


@dataclass(frozen=True)
class OrganizationStats:
    """Organization-wide presence for the current month."""

    total_employees: int
    working_days: int
    total_present: int
    average_percentage: Decimal


@dataclass(frozen=True)
class MonthlyReport:
    working_days: int
    stats: dict[UUID, AttendanceStats]


def late_minutes_at(moment: datetime) -> int:
    """Whole minutes past the 09:30 start; 0 when on time or early."""
    if (moment.hour, moment.minute) <= (WORK_START.hour, WORK_START.minute):
        return 0
    return (moment.hour - WORK_START.hour) * 60 + (moment.minute - WORK_START.minute)


def overtime_hours_between(clock_in: datetime, clock_out: datetime) -> Decimal:
    """Hours worked beyond the standard 9-hour day."""
    elapsed = clock_out - clock_in
    seconds = elapsed.days * 86400 + elapsed.seconds
    hours = Decimal(seconds) / Decimal(3600)
    overtime = max(Decimal("0"), hours - STANDARD_WORK_HOURS)
    return overtime.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def count_working_days(start: date, end: date) -> int:
    """Non-Sunday calendar days from start through end, inclusive."""
    count = 0
    day = start
    while day <= end:
        if day.weekday() != 6:
            count += 1
        day += timedelta(days=1)
    return count


def presence_percentage(present: int, possible: int) -> Decimal:
    """min(100, present / possible * 100) to 1 decimal; 0 when nothing is possible."""
    if possible <= 0:
        return Decimal("0.0")
    percentage = min(Decimal(100), Decimal(present) / Decimal(possible) * 100)
    return percentage.quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP)


def _as_aware(moment: datetime, tz: tzinfo | None) -> datetime:
    # Backends without timezone support hand back naive local timestamps
    if moment.tzinfo is None and tz is not None:
        return moment.replace(tzinfo=tz)
    return moment


class AttendanceService:
    """Service for attendance records.

    One record per employee per local calendar day: created at check-in,
    finalized at check-out, never touched again.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or office_clock()

    async def check_in(self, employee_id: UUID) -> AttendanceRecord:
        """Record today's check-in, computing lateness against 09:30."""
        now = self.clock()
        today = now.date()

        if await self.session.get(Employee, employee_id) is None:
            raise EmployeeNotFoundError(employee_id)

        inserted = await insert_if_absent(
            self.session,
            AttendanceRecord,
            {
                "employee_id": employee_id,
                "work_date": today,
                "clock_in": now,
                "late_minutes": late_minutes_at(now),
                "overtime_hours": Decimal("0"),
                "status": PRESENT,
            },
            ["employee_id", "work_date"],
        )
        if not inserted:
            raise AlreadyCheckedInError(employee_id, today)

        record = await self._get_record(employee_id, today)
        if record.late_minutes:
            logger.info(
                "Employee %s checked in %s minutes late", employee_id, record.late_minutes
            )
        return record

    async def check_out(self, employee_id: UUID) -> AttendanceRecord:
        """Finalize today's record with clock-out time and overtime."""
        now = self.clock()
        today = now.date()

        record = await self._get_record(employee_id, today)
        if record is None:
            raise NoCheckInError(employee_id, today)
        if record.is_checked_out:
            raise InvalidStateError(
                f"Employee {employee_id} already checked out on {today}"
            )

        overtime = overtime_hours_between(_as_aware(record.clock_in, now.tzinfo), now)
        result = await self.session.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.attendance_record_id == record.attendance_record_id,
                AttendanceRecord.clock_out.is_(None),
            )
            .values(clock_out=now, overtime_hours=overtime)
        )
        if result.rowcount == 0:
            raise InvalidStateError(
                f"Employee {employee_id} already checked out on {today}"
            )
        await self.session.refresh(record)
        return record

    async def today_status(
        self, employee_id: UUID
    ) -> tuple[TodayStatus, AttendanceRecord | None]:
        """Where the employee is in today's check-in/check-out cycle."""
        record = await self._get_record(employee_id, self.clock().date())
        if record is None:
            return TodayStatus.NOT_CHECKED_IN, None
        if record.is_checked_out:
            return TodayStatus.CHECKED_OUT, record
        return TodayStatus.CHECKED_IN, record

    async def history(self, employee_id: UUID) -> list[AttendanceRecord]:
        """All of an employee's records, most recent day first."""
        result = await self.session.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .order_by(AttendanceRecord.work_date.desc())
        )
        return list(result.scalars().all())

    async def today_records(self) -> list[AttendanceRecord]:
        """Every record for today, latest check-in first."""
        result = await self.session.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.work_date == self.clock().date())
            .order_by(AttendanceRecord.clock_in.desc())
        )
        return list(result.scalars().all())

    async def monthly_stats(self, employee_id: UUID) -> AttendanceStats:
        """Presence percentage for the current month to date."""
        month_start, today = self._month_to_date()
        working_days = count_working_days(month_start, today)

        present_days = await self.session.scalar(
            select(func.count())
            .select_from(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date >= month_start,
                AttendanceRecord.work_date <= today,
                AttendanceRecord.status == PRESENT,
            )
        ) or 0

        return AttendanceStats(
            present_days=present_days,
            working_days=working_days,
            percentage=presence_percentage(present_days, working_days),
        )

    async def monthly_report(self) -> MonthlyReport:
        """Per-employee presence for the current month, shared working days."""
        month_start, today = self._month_to_date()
        working_days = count_working_days(month_start, today)

        result = await self.session.execute(
            select(AttendanceRecord.employee_id, func.count())
            .where(
                AttendanceRecord.work_date >= month_start,
                AttendanceRecord.work_date <= today,
                AttendanceRecord.status == PRESENT,
            )
            .group_by(AttendanceRecord.employee_id)
        )
        stats = {
            employee_id: AttendanceStats(
                present_days=present,
                working_days=working_days,
                percentage=presence_percentage(present, working_days),
            )
            for employee_id, present in result.all()
        }
        return MonthlyReport(working_days=working_days, stats=stats)

    async def organization_stats(self) -> OrganizationStats:
        """Average presence across all employees for the current month."""
        month_start, today = self._month_to_date()
        working_days = count_working_days(month_start, today)

        total_employees = await self.session.scalar(
            select(func.count()).select_from(Employee)
        ) or 0
        total_present = await self.session.scalar(
            select(func.count())
            .select_from(AttendanceRecord)
            .where(
                AttendanceRecord.work_date >= month_start,
                AttendanceRecord.work_date <= today,
                AttendanceRecord.status == PRESENT,
            )
        ) or 0

        return OrganizationStats(
            total_employees=total_employees,
            working_days=working_days,
            total_present=total_present,
            average_percentage=presence_percentage(
                total_present, total_employees * working_days
            ),
        )

    def _month_to_date(self) -> tuple[date, date]:
        today = self.clock().date()
        return today.replace(day=1), today

    async def _get_record(
        self, employee_id: UUID, work_date: date
    ) -> AttendanceRecord | None:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date == work_date,
            )
        )
        return result.scalar_one_or_none()
