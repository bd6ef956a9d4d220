"""Employee, salary structure and salary history models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll_engine.models.base import Base, Money, TimestampMixin, utcnow

if TYPE_CHECKING:
    from hr_payroll_engine.models.leave import LeaveTemplate


class Employee(Base, TimestampMixin):
    """Employee identity and employment metadata."""

    __tablename__ = "employee"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    date_of_joining: Mapped[date] = mapped_column(nullable=False)
    date_of_leaving: Mapped[date | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    leave_template_id: Mapped[int | None] = mapped_column(
        ForeignKey("leave_template.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'PUBLISHED', 'RESIGNED', 'TERMINATED', 'ABSCONDING')",
            name="employee_status_check",
        ),
    )

    # Relationships
    leave_template: Mapped[LeaveTemplate | None] = relationship()
    salary: Mapped[SalaryStructure | None] = relationship(
        back_populates="employee", uselist=False
    )


class SalaryComponentsMixin:
    """Annual earning and deduction components.

    Nullable because legacy snapshots may hold nulls; readers treat a
    missing component as zero.
    """

    # Earnings
    basic_salary: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    hra: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    da: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    ta: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    special_allowance: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    other_allowances: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    # Deductions
    provident_fund: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    esi: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    professional_tax: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    income_tax: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    other_deductions: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    # Derived snapshot
    ctc_annual: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    net_salary_annual: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    net_salary_monthly: Mapped[Decimal | None] = mapped_column(Money, nullable=True)


class SalaryStructure(Base, SalaryComponentsMixin, TimestampMixin):
    """The live compensation structure of an employee (one per employee)."""

    __tablename__ = "salary_structure"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    effective_from: Mapped[date] = mapped_column(nullable=False)
    effective_to: Mapped[date | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    employee: Mapped[Employee] = relationship(back_populates="salary")


class SalaryHistory(Base, SalaryComponentsMixin, TimestampMixin):
    """Archived salary structure, written once per increment."""

    __tablename__ = "salary_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    effective_from: Mapped[date] = mapped_column(nullable=False)
    effective_to: Mapped[date] = mapped_column(nullable=False)
    reason: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "effective_to >= effective_from",
            name="salary_history_dates_check",
        ),
    )


class SequenceCounter(Base):
    """Named monotonically increasing counter (e.g. employee codes)."""

    __tablename__ = "sequence_counter"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
