"""Attendance record model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
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
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class AttendanceRecord(Base, TimestampMixin):
    """One check-in/check-out pair per employee per local calendar day."""

    __tablename__ = "attendance_record"

    attendance_record_id: Mapped[UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid4
    )
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    clock_in: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    late_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="PRESENT")

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "work_date", name="attendance_record_employee_date_unique"
        ),
        CheckConstraint("late_minutes >= 0", name="attendance_record_late_check"),
        CheckConstraint("overtime_hours >= 0", name="attendance_record_overtime_check"),
    )

    employee: Mapped[Employee] = relationship(back_populates="attendance_records")

    @property
    def is_checked_out(self) -> bool:
        return self.clock_out is not None
