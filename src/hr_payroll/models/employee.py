"""Employee, tax slab and salary revision models."""

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
    Numeric,
    String,
    Uuid,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.errors import ImmutableRecordError
from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.attendance import AttendanceRecord
    from hr_payroll.models.leave import LeaveBalance, LeaveRequest
    from hr_payroll.models.payroll import PayrollRun


class TaxSlab(Base, TimestampMixin):
    """Income tax slab reference data."""

    __tablename__ = "tax_slab"

    tax_slab_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    min_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    max_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    region: Mapped[str] = mapped_column(String, nullable=False, default="IN")
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "tax_percentage >= 0 AND tax_percentage <= 100",
            name="tax_slab_percentage_check",
        ),
    )


class Employee(Base, TimestampMixin):
    """Employee record with its compensation components."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="EMPLOYEE")
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    join_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Legacy flat salary, used only when all components are zero
    salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    hra: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    special_allowance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=0
    )
    tax_slab_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("tax_slab.tax_slab_id"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("role IN ('EMPLOYEE', 'ADMIN')", name="employee_role_check"),
        CheckConstraint(
            "salary >= 0 AND basic_salary >= 0 AND hra >= 0 AND special_allowance >= 0",
            name="employee_compensation_check",
        ),
    )

    # Relationships
    tax_slab: Mapped[TaxSlab | None] = relationship()
    salary_revisions: Mapped[list[SalaryRevision]] = relationship(
        back_populates="employee",
        foreign_keys="SalaryRevision.employee_id",
    )
    leave_balances: Mapped[list[LeaveBalance]] = relationship(back_populates="employee")
    leave_requests: Mapped[list[LeaveRequest]] = relationship(back_populates="employee")
    attendance_records: Mapped[list[AttendanceRecord]] = relationship(
        back_populates="employee"
    )
    payroll_runs: Mapped[list[PayrollRun]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"


class SalaryRevision(Base):
    """Append-only audit trail of salary changes."""

    __tablename__ = "salary_revision"

    salary_revision_id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    old_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    new_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    changed_by: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("employee.employee_id"),
        nullable=True,
    )
    change_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    employee: Mapped[Employee] = relationship(
        back_populates="salary_revisions",
        foreign_keys=[employee_id],
    )


@event.listens_for(SalaryRevision, "before_update")
def _reject_revision_update(mapper, connection, target: SalaryRevision) -> None:
    raise ImmutableRecordError(
        f"Salary revision {target.salary_revision_id} is append-only"
    )


@event.listens_for(SalaryRevision, "before_delete")
def _reject_revision_delete(mapper, connection, target: SalaryRevision) -> None:
    raise ImmutableRecordError(
        f"Salary revision {target.salary_revision_id} cannot be deleted"
    )
