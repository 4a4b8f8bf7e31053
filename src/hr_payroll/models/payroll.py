"""Payroll run model."""

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
    Uuid,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.errors import ImmutableRecordError
from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    PROCESSED = "PROCESSED"
    PAID = "PAID"


def _money() -> Mapped[Decimal]:
    return mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))


class PayrollRun(Base, TimestampMixin):
    """Processed payroll for one employee and pay period.

    Immutable once written except for the PROCESSED -> PAID transition.
    """

    __tablename__ = "payroll_run"

    payroll_run_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)

    # Earnings
    basic_pay: Mapped[Decimal] = _money()
    hra_pay: Mapped[Decimal] = _money()
    special_allowance_pay: Mapped[Decimal] = _money()
    overtime_pay: Mapped[Decimal] = _money()
    bonus: Mapped[Decimal] = _money()
    gross_pay: Mapped[Decimal] = _money()

    # Deductions
    leave_deduction: Mapped[Decimal] = _money()
    late_deduction: Mapped[Decimal] = _money()
    pf_deduction: Mapped[Decimal] = _money()
    professional_tax_deduction: Mapped[Decimal] = _money()
    esi_deduction: Mapped[Decimal] = _money()
    manual_deductions: Mapped[Decimal] = _money()
    income_tax_deduction: Mapped[Decimal] = _money()
    ewa_deductions: Mapped[Decimal] = _money()
    deductions: Mapped[Decimal] = _money()
    net_pay: Mapped[Decimal] = _money()

    # Inputs that drove the calculation
    lop_days: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    late_deduction_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)

    status: Mapped[str] = mapped_column(String, nullable=False, default="PROCESSED")
    payment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PROCESSED', 'PAID')",
            name="payroll_run_status_check",
        ),
        CheckConstraint(
            "pay_period_end >= pay_period_start",
            name="payroll_run_dates_check",
        ),
    )

    employee: Mapped[Employee] = relationship(back_populates="payroll_runs")


# Columns allowed to change after a run is written
PAYROLL_RUN_MUTABLE_COLUMNS = frozenset({"status", "payment_date"})


@event.listens_for(PayrollRun, "before_update")
def _guard_payroll_run_update(mapper, connection, target: PayrollRun) -> None:
    state = inspect(target)
    changed = {
        column.key
        for column in mapper.column_attrs
        if state.attrs[column.key].history.has_changes()
    }
    frozen = changed - PAYROLL_RUN_MUTABLE_COLUMNS
    if frozen:
        raise ImmutableRecordError(
            f"Payroll run {target.payroll_run_id} is immutable; "
            f"cannot change {', '.join(sorted(frozen))}"
        )


@event.listens_for(PayrollRun, "before_delete")
def _reject_payroll_run_delete(mapper, connection, target: PayrollRun) -> None:
    raise ImmutableRecordError(f"Payroll run {target.payroll_run_id} cannot be deleted")
