"""Leave balance, leave request and accrual period models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class LeaveType(str, Enum):
    """Leave types backed by a balance column."""

    SICK = "SICK"
    CASUAL = "CASUAL"
    EARNED = "EARNED"


class LeaveStatus(str, Enum):
    """Leave request status values."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# leave_type -> LeaveBalance attribute; other types carry no balance
BALANCE_COLUMNS: dict[str, str] = {
    LeaveType.SICK.value: "sick_leave_balance",
    LeaveType.CASUAL.value: "casual_leave_balance",
    LeaveType.EARNED.value: "earned_leave_balance",
}


class LeaveBalance(Base, TimestampMixin):
    """Per-employee, per-calendar-year leave balances."""

    __tablename__ = "leave_balance"

    leave_balance_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    sick_leave_balance: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    casual_leave_balance: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    earned_leave_balance: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "year", name="leave_balance_employee_year_unique"),
        CheckConstraint(
            "sick_leave_balance >= 0 AND casual_leave_balance >= 0 "
            "AND earned_leave_balance >= 0",
            name="leave_balance_non_negative_check",
        ),
    )

    employee: Mapped[Employee] = relationship(back_populates="leave_balances")

    def get_balance(self, leave_type: str) -> Decimal | None:
        """Get the balance backing a leave type, or None for unbacked types."""
        column = BALANCE_COLUMNS.get(leave_type)
        if column is None:
            return None
        return Decimal(getattr(self, column))


class LeaveRequest(Base, TimestampMixin):
    """Leave request ledger entry."""

    __tablename__ = "leave_request"

    leave_request_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_count: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    lop_days: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="leave_request_status_check",
        ),
        CheckConstraint("days_count > 0", name="leave_request_days_check"),
        CheckConstraint("lop_days >= 0", name="leave_request_lop_check"),
        CheckConstraint("end_date >= start_date", name="leave_request_dates_check"),
    )

    employee: Mapped[Employee] = relationship(back_populates="leave_requests")


class LeaveAccrualPeriod(Base, TimestampMixin):
    """Marker written once per accrued (year, month)."""

    __tablename__ = "leave_accrual_period"

    leave_accrual_period_id: Mapped[UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid4
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    initialized: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("year", "month", name="leave_accrual_period_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="leave_accrual_period_month_check"),
    )
