"""Leave balance ledger - per employee / leave type / year balances.

Provides credit and debit postings with:
- Lazy balance creation (opening = 0) on first posting
- Row-level locking so concurrent postings serialize per balance row
- An append-only LeaveTransaction row for every posting
- Pro-rata balance initialization for a leave year

The ledger does not deduplicate postings. Callers guard against
re-application (the payroll publish and comp-off approval transitions
fire their credit only on the first entry into the target status).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hr_payroll_engine.calculators.pro_rata import compute_pro_rata_credit, remaining_months
from hr_payroll_engine.calculators.types import to_decimal
from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import InsufficientBalanceError, NotFoundError, ValidationError
from hr_payroll_engine.models import (
    Employee,
    EmployeeLeaveBalance,
    LeaveTransaction,
    LeaveType,
)
from hr_payroll_engine.services.state_machine import EmployeeStatus

logger = logging.getLogger(__name__)

CREDIT = "CREDIT"
DEBIT = "DEBIT"


@dataclass(frozen=True)
class LedgerPosting:
    """Result of a credit or debit."""

    balance_id: int
    transaction_id: int
    transaction_type: str
    days: Decimal
    closing: Decimal


class LeaveLedgerService:
    """Credit/debit postings against EmployeeLeaveBalance rows.

    Invariant: closing == opening + credited - used. Postings always move
    credited/used together with closing, never one without the other.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    async def get_balance(
        self,
        employee_id: int,
        leave_type_id: int,
        year: int,
        lock: bool = False,
    ) -> EmployeeLeaveBalance | None:
        """Load a balance row, optionally locking it FOR UPDATE."""
        stmt = select(EmployeeLeaveBalance).where(
            EmployeeLeaveBalance.employee_id == employee_id,
            EmployeeLeaveBalance.leave_type_id == leave_type_id,
            EmployeeLeaveBalance.year == year,
        )
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def credit(
        self,
        employee_id: int,
        leave_type_id: int,
        year: int,
        amount: Decimal,
        reason: str,
    ) -> LedgerPosting:
        """Add days to a balance, creating the row if needed."""
        amount = self._validate_amount(amount)
        leave_type = await self._get_leave_type(leave_type_id)

        balance = await self._get_or_create_balance(employee_id, leave_type_id, year)
        balance.credited += amount
        balance.closing += amount

        txn = self._append(balance, leave_type, CREDIT, amount, reason)
        await self.session.flush()

        logger.info(
            "Credited %s %s day(s) to employee %s for %s (closing=%s): %s",
            amount, leave_type.code, employee_id, year, balance.closing, reason,
        )
        return LedgerPosting(balance.id, txn.id, CREDIT, amount, balance.closing)

    async def debit(
        self,
        employee_id: int,
        leave_type_id: int,
        year: int,
        amount: Decimal,
        reason: str,
    ) -> LedgerPosting:
        """Consume days from an existing balance.

        Raises:
            InsufficientBalanceError: If no balance row exists for the key.
        """
        amount = self._validate_amount(amount)
        leave_type = await self._get_leave_type(leave_type_id)

        balance = await self.get_balance(employee_id, leave_type_id, year, lock=True)
        if balance is None:
            raise InsufficientBalanceError(
                required=amount,
                available=Decimal("0"),
                message=(
                    f"No {leave_type.code} balance for employee {employee_id} "
                    f"in {year}. Required: {amount}, Available: 0"
                ),
            )

        balance.used += amount
        balance.closing -= amount

        txn = self._append(balance, leave_type, DEBIT, amount, reason)
        await self.session.flush()

        logger.info(
            "Debited %s %s day(s) from employee %s for %s (closing=%s): %s",
            amount, leave_type.code, employee_id, year, balance.closing, reason,
        )
        return LedgerPosting(balance.id, txn.id, DEBIT, amount, balance.closing)

    async def list_balances(self, employee_id: int, year: int) -> list[EmployeeLeaveBalance]:
        """Balances for an employee and year, with leave types loaded."""
        result = await self.session.execute(
            select(EmployeeLeaveBalance)
            .where(
                EmployeeLeaveBalance.employee_id == employee_id,
                EmployeeLeaveBalance.year == year,
            )
            .options(selectinload(EmployeeLeaveBalance.leave_type))
            .order_by(EmployeeLeaveBalance.leave_type_id)
        )
        return list(result.scalars().all())

    async def list_transactions(
        self,
        employee_id: int,
        year: int | None = None,
    ) -> list[LeaveTransaction]:
        """Ledger history for an employee, oldest first."""
        stmt = select(LeaveTransaction).where(LeaveTransaction.employee_id == employee_id)
        if year is not None:
            stmt = stmt.where(LeaveTransaction.year == year)
        result = await self.session.execute(stmt.order_by(LeaveTransaction.id))
        return list(result.scalars().all())

    async def initialize_balances(self, year: int) -> int:
        """Create missing balances for every published employee with a template.

        The opening credit is pro-rated from the joining date. Existing
        rows are left untouched, so re-running is safe.

        Returns count of balance rows created.
        """
        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.status == EmployeeStatus.PUBLISHED.value,
                Employee.leave_template_id.is_not(None),
            )
            .order_by(Employee.id)
        )
        employees = list(result.scalars().all())

        created = 0
        for employee in employees:
            types_result = await self.session.execute(
                select(LeaveType)
                .where(LeaveType.leave_template_id == employee.leave_template_id)
                .order_by(LeaveType.id)
            )
            leave_types = list(types_result.scalars().all())
            months = remaining_months(
                employee.date_of_joining, year, self.settings.pro_rata_cutoff_day
            )

            async with atomic(self.session):
                for leave_type in leave_types:
                    existing = await self.get_balance(employee.id, leave_type.id, year)
                    if existing is not None:
                        continue

                    credit = compute_pro_rata_credit(leave_type, months)
                    if credit > 0:
                        await self.credit(
                            employee.id,
                            leave_type.id,
                            year,
                            credit,
                            f"Opening Balance {year} ({months} month(s))",
                        )
                    else:
                        await self._get_or_create_balance(employee.id, leave_type.id, year)
                    created += 1

        logger.info("Initialized %d leave balance(s) for %d", created, year)
        return created

    async def _get_or_create_balance(
        self,
        employee_id: int,
        leave_type_id: int,
        year: int,
    ) -> EmployeeLeaveBalance:
        """Locked balance row, inserting an empty one if absent."""
        balance = await self.get_balance(employee_id, leave_type_id, year, lock=True)
        if balance is not None:
            return balance

        try:
            async with self.session.begin_nested():
                balance = EmployeeLeaveBalance(
                    employee_id=employee_id,
                    leave_type_id=leave_type_id,
                    year=year,
                    opening=Decimal("0"),
                    credited=Decimal("0"),
                    used=Decimal("0"),
                    closing=Decimal("0"),
                )
                self.session.add(balance)
                await self.session.flush()
        except IntegrityError:
            # Another transaction created the row first; use theirs.
            balance = await self.get_balance(employee_id, leave_type_id, year, lock=True)
            if balance is None:
                raise
        return balance

    async def _get_leave_type(self, leave_type_id: int) -> LeaveType:
        leave_type = await self.session.get(LeaveType, leave_type_id)
        if leave_type is None:
            raise NotFoundError("LeaveType", leave_type_id)
        return leave_type

    def _append(
        self,
        balance: EmployeeLeaveBalance,
        leave_type: LeaveType,
        transaction_type: str,
        amount: Decimal,
        reason: str,
    ) -> LeaveTransaction:
        txn = LeaveTransaction(
            employee_id=balance.employee_id,
            leave_type_id=leave_type.id,
            leave_type_code=leave_type.code,
            year=balance.year,
            transaction_type=transaction_type,
            days=amount,
            reason=reason,
        )
        self.session.add(txn)
        return txn

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive", {"amount": str(amount)})
        return amount
