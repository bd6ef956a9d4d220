"""Monthly payroll record model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_payroll_engine.models.base import Base, Days, Money, TimestampMixin

ZERO = Decimal("0")


class PayrollRecord(Base, TimestampMixin):
    """One employee's pay for one (year, month).

    Financial fields are mutable only while status is DRAFT.
    """

    __tablename__ = "payroll_record"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    payroll_date: Mapped[date] = mapped_column(nullable=False)

    # Attendance
    total_working_days: Mapped[Decimal] = mapped_column(Days, nullable=False)
    present_days: Mapped[Decimal] = mapped_column(Days, nullable=False)
    lop_days: Mapped[Decimal] = mapped_column(Days, nullable=False, default=ZERO)

    # Earnings (monthly)
    basic_salary: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    hra: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    da: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    ta: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    special_allowance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    other_allowances: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    gross_salary: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Deductions (monthly)
    provident_fund: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    esi: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    professional_tax: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    income_tax: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    lop_deduction: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    other_deductions: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    total_deductions: Mapped[Decimal] = mapped_column(Money, nullable=False)

    net_salary: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Proposed earned-leave accrual for this cycle
    el_credit: Mapped[Decimal] = mapped_column(Days, nullable=False, default=ZERO)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "year", "month", name="payroll_record_period_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="payroll_record_month_check"),
        CheckConstraint(
            "status IN ('DRAFT', 'PROCESSED', 'PAID')",
            name="payroll_record_status_check",
        ),
        CheckConstraint("lop_days >= 0", name="payroll_record_lop_check"),
    )

    @property
    def period_label(self) -> str:
        return f"{self.month}/{self.year}"
