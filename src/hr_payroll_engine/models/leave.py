"""Leave policy, balance ledger, application and comp-off models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll_engine.models.base import Base, Days, TimestampMixin


# ===== Policy =====


class LeaveTemplate(Base, TimestampMixin):
    """Named leave policy grouping a set of leave types."""

    __tablename__ = "leave_template"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    leave_types: Mapped[list[LeaveType]] = relationship(back_populates="template")


class LeaveType(Base, TimestampMixin):
    """Leave type reference data (CL, EL, SL, LOP, CO, ...)."""

    __tablename__ = "leave_type"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    leave_template_id: Mapped[int] = mapped_column(
        ForeignKey("leave_template.id", ondelete="CASCADE"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    annual_quota: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("0"))
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    carry_forward: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("leave_template_id", "code", name="leave_type_template_code_unique"),
        CheckConstraint("annual_quota >= 0", name="leave_type_quota_check"),
    )

    template: Mapped[LeaveTemplate] = relationship(back_populates="leave_types")


# ===== Ledger =====


class EmployeeLeaveBalance(Base, TimestampMixin):
    """Per employee / leave type / year balance.

    closing == opening + credited - used after every mutation.
    """

    __tablename__ = "employee_leave_balance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type_id: Mapped[int] = mapped_column(
        ForeignKey("leave_type.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    opening: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("0"))
    credited: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("0"))
    used: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("0"))
    closing: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("0"))

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "leave_type_id",
            "year",
            name="employee_leave_balance_key",
        ),
    )

    leave_type: Mapped[LeaveType] = relationship()

    def is_consistent(self) -> bool:
        return self.closing == self.opening + self.credited - self.used


class LeaveTransaction(Base, TimestampMixin):
    """Append-only ledger row for every credit and debit."""

    __tablename__ = "leave_transaction"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type_id: Mapped[int] = mapped_column(
        ForeignKey("leave_type.id", ondelete="RESTRICT"),
        nullable=False,
    )
    leave_type_code: Mapped[str] = mapped_column(String(16), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(8), nullable=False)
    days: Mapped[Decimal] = mapped_column(Days, nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('CREDIT', 'DEBIT')",
            name="leave_transaction_type_check",
        ),
        CheckConstraint("days > 0", name="leave_transaction_days_positive"),
    )


# ===== Workflows =====


class LeaveApplication(Base, TimestampMixin):
    """An employee leave request."""

    __tablename__ = "leave_application"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type_id: Mapped[int] = mapped_column(
        ForeignKey("leave_type.id", ondelete="RESTRICT"),
        nullable=False,
    )
    from_date: Mapped[date] = mapped_column(nullable=False)
    to_date: Mapped[date] = mapped_column(nullable=False)
    from_half_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    to_half_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_days: Mapped[Decimal] = mapped_column(Days, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")

    __table_args__ = (
        CheckConstraint("to_date >= from_date", name="leave_application_dates_check"),
        CheckConstraint(
            "status IN ('PENDING', 'L1_APPROVED', 'L2_APPROVED', 'APPROVED', 'REJECTED')",
            name="leave_application_status_check",
        ),
    )

    leave_type: Mapped[LeaveType] = relationship()


class CompOffRecord(Base, TimestampMixin):
    """A claim for working on a day off, credited as CO leave on approval."""

    __tablename__ = "comp_off_record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    worked_date: Mapped[date] = mapped_column(nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    expiry_date: Mapped[date] = mapped_column(nullable=False)
    credited_days: Mapped[Decimal] = mapped_column(Days, nullable=False, default=Decimal("1"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'ACTIVE', 'EXPIRED', 'USED')",
            name="comp_off_status_check",
        ),
    )


class Holiday(Base, TimestampMixin):
    """Company holiday calendar entry."""

    __tablename__ = "holiday"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    holiday_date: Mapped[date] = mapped_column("date", unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
