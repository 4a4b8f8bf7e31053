"""Leave ledger: leave requests, balances and loss-of-pay reconciliation."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.clock import Clock, office_clock
from hr_payroll.database import insert_if_absent
from hr_payroll.errors import (
    EmployeeNotFoundError,
    InvalidTransitionError,
    LeaveRequestNotFoundError,
)
from hr_payroll.models import (
    BALANCE_COLUMNS,
    Employee,
    LeaveBalance,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from hr_payroll.schemas import LeaveRequestCreate
from hr_payroll.services.state_machine import LeaveRequestStateMachine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Seed used when a balance row is created lazily outside the accrual job
DEFAULT_BALANCES: dict[str, Decimal] = {
    LeaveType.SICK.value: Decimal("12"),
    LeaveType.CASUAL.value: Decimal("12"),
    LeaveType.EARNED.value: Decimal("15"),
}


def consume_balance(current: Decimal, days: Decimal) -> tuple[Decimal, Decimal]:
    """Take ``days`` from a balance without letting it go negative.

    Returns (new_balance, lop_days); any shortfall becomes loss-of-pay days.
    """
    current = max(ZERO, current)
    if days <= current:
        return current - days, ZERO
    return ZERO, days - current


def balance_values(seed: dict[str, Decimal]) -> dict[str, Decimal]:
    """Map a per-leave-type seed onto LeaveBalance column values."""
    return {BALANCE_COLUMNS[leave_type]: amount for leave_type, amount in seed.items()}


class LeaveService:
    """Service for the leave request ledger and per-year balances.

    Operations:
    - create_request: record a PENDING request (no balance check)
    - set_status: decide a PENDING request exactly once; approval consumes
      balance and converts any shortfall into LOP days
    - get_or_init_balance: read a year's balances, seeding defaults lazily
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or office_clock()

    async def create_request(
        self,
        employee_id: UUID,
        leave_type: str,
        start_date: date,
        end_date: date,
        days_count: Decimal,
        reason: str | None = None,
    ) -> LeaveRequest:
        """Create a leave request in PENDING status."""
        payload = LeaveRequestCreate(
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days_count=days_count,
            reason=reason,
        )
        if await self.session.get(Employee, payload.employee_id) is None:
            raise EmployeeNotFoundError(payload.employee_id)

        request = LeaveRequest(
            employee_id=payload.employee_id,
            leave_type=payload.leave_type.value,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days_count=payload.days_count,
            reason=payload.reason,
            status=LeaveStatus.PENDING.value,
            lop_days=ZERO,
        )
        self.session.add(request)
        await self.session.flush()
        return request

    async def set_status(self, leave_request_id: UUID, new_status: str) -> LeaveRequest:
        """Approve or reject a PENDING leave request.

        Raises LeaveRequestNotFoundError if the request does not exist and
        InvalidTransitionError if it has already been decided.
        """
        request = await self.get_request(leave_request_id)
        LeaveRequestStateMachine.validate_transition(request.status, new_status)
        new_status = LeaveStatus(new_status).value

        # Conditional update so two concurrent decisions cannot both win
        result = await self.session.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.leave_request_id == leave_request_id,
                LeaveRequest.status == LeaveStatus.PENDING.value,
            )
            .values(status=new_status, decided_at=self.clock())
        )
        if result.rowcount == 0:
            await self.session.refresh(request)
            raise InvalidTransitionError(
                request.status, new_status, "request was decided concurrently"
            )
        await self.session.refresh(request)

        if new_status == LeaveStatus.APPROVED:
            await self._apply_approval(request)

        return request

    async def get_or_init_balance(
        self,
        employee_id: UUID,
        year: int | None = None,
        for_update: bool = False,
    ) -> LeaveBalance:
        """Get an employee's balances for a year, creating default ones if missing.

        Raises EmployeeNotFoundError if there is no such employee.
        """
        if year is None:
            year = self.clock().year

        balance = await self._select_balance(employee_id, year, for_update)
        if balance is None:
            if await self.session.get(Employee, employee_id) is None:
                raise EmployeeNotFoundError(employee_id)
            await insert_if_absent(
                self.session,
                LeaveBalance,
                {"employee_id": employee_id, "year": year, **balance_values(DEFAULT_BALANCES)},
                ["employee_id", "year"],
            )
            balance = await self._select_balance(employee_id, year, for_update)
        return balance

    async def get_request(self, leave_request_id: UUID) -> LeaveRequest:
        request = await self.session.get(LeaveRequest, leave_request_id)
        if request is None:
            raise LeaveRequestNotFoundError(leave_request_id)
        return request

    async def list_requests(self, employee_id: UUID) -> list[LeaveRequest]:
        """Get an employee's leave requests, newest first."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.start_date.desc())
        )
        return list(result.scalars().all())

    async def pending_requests(self) -> list[LeaveRequest]:
        """Get all PENDING requests, oldest first."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(LeaveRequest.status == LeaveStatus.PENDING.value)
            .order_by(LeaveRequest.created_at.asc(), LeaveRequest.start_date.asc())
        )
        return list(result.scalars().all())

    async def all_requests(self) -> list[LeaveRequest]:
        """Get every leave request, newest first."""
        result = await self.session.execute(
            select(LeaveRequest).order_by(
                LeaveRequest.created_at.desc(), LeaveRequest.start_date.desc()
            )
        )
        return list(result.scalars().all())

    async def _apply_approval(self, request: LeaveRequest) -> None:
        """Consume balance for an approved request, recording any LOP days."""
        column = BALANCE_COLUMNS.get(request.leave_type)
        if column is None:
            return

        # Row lock serializes approvals against the same (employee, year)
        balance = await self.get_or_init_balance(
            request.employee_id, self.clock().year, for_update=True
        )
        current = Decimal(getattr(balance, column))
        remaining, lop_days = consume_balance(current, Decimal(request.days_count))
        setattr(balance, column, remaining)

        if lop_days > 0:
            request.lop_days = lop_days
            logger.info(
                "Leave %s approved with %s LOP days (balance %s exhausted)",
                request.leave_request_id,
                lop_days,
                current,
            )
        await self.session.flush()

    async def _select_balance(
        self, employee_id: UUID, year: int, for_update: bool
    ) -> LeaveBalance | None:
        stmt = select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.year == year,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()
