"""Payroll record mutations - recalculation and status transitions.

Financial inputs (LOP days, bonus, ad-hoc deductions) are editable only
while a record is DRAFT. Publishing (DRAFT -> PROCESSED) accrues the
record's earned-leave credit to the ledger. The record row is locked and
its prior status compared before the update, so a repeated publish never
credits twice.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.payroll_math import recalculate
from hr_payroll_engine.calculators.types import LeaveCode, to_decimal
from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hr_payroll_engine.models import Employee, LeaveType, PayrollRecord
from hr_payroll_engine.models.base import utcnow
from hr_payroll_engine.services.ledger_service import LeaveLedgerService
from hr_payroll_engine.services.state_machine import (
    Effect,
    PayrollRecordStateMachine,
    PayrollStatus,
)

logger = logging.getLogger(__name__)


class PayrollRecordService:
    """Updates a single payroll record."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.ledger = LeaveLedgerService(session, self.settings)

    async def get_record(self, record_id: int) -> PayrollRecord:
        record = await self.session.get(PayrollRecord, record_id)
        if record is None:
            raise NotFoundError("PayrollRecord", record_id)
        return record

    async def update(
        self,
        record_id: int,
        lop_days: Decimal | None = None,
        other_allowances: Decimal | None = None,
        other_deductions: Decimal | None = None,
        status: PayrollStatus | str | None = None,
    ) -> PayrollRecord:
        """Apply financial changes and/or a status change atomically.

        Financial fields are applied first (against the current status),
        then the status transition.

        Args:
            record_id: Payroll record to update
            lop_days: Loss-of-pay days, 0..total_working_days
            other_allowances: Bonus for the month, >= 0
            other_deductions: Ad-hoc deductions for the month, >= 0
            status: Target status; same as current is a no-op

        Returns:
            The updated record

        Raises:
            NotFoundError: Unknown record
            ConflictError: Financial change on a non-DRAFT record
            InvalidTransitionError: Status change not allowed
            ValidationError: Out-of-range inputs
            ConfigurationError: Publish needs EL but the template has none
        """
        target = self._parse_status(status) if status is not None else None
        financial = any(v is not None for v in (lop_days, other_allowances, other_deductions))

        async with atomic(self.session):
            record = await self._get_for_update(record_id)

            if financial:
                self._apply_financials(record, lop_days, other_allowances, other_deductions)

            if target is not None and target != record.status:
                await self._transition(record, target)

            await self.session.flush()

        return record

    async def recalculate(
        self,
        record_id: int,
        lop_days: Decimal | None = None,
        other_allowances: Decimal | None = None,
        other_deductions: Decimal | None = None,
    ) -> PayrollRecord:
        return await self.update(
            record_id,
            lop_days=lop_days,
            other_allowances=other_allowances,
            other_deductions=other_deductions,
        )

    async def publish(self, record_id: int) -> PayrollRecord:
        """DRAFT -> PROCESSED, accruing earned leave."""
        return await self.update(record_id, status=PayrollStatus.PROCESSED)

    async def mark_paid(self, record_id: int) -> PayrollRecord:
        return await self.update(record_id, status=PayrollStatus.PAID)

    def _apply_financials(
        self,
        record: PayrollRecord,
        lop_days: Decimal | None,
        other_allowances: Decimal | None,
        other_deductions: Decimal | None,
    ) -> None:
        if not PayrollRecordStateMachine.can_modify_inputs(record.status):
            raise ConflictError(
                f"Payroll record {record.id} is {record.status}; "
                "only DRAFT records can be modified",
                {"record_id": record.id, "status": record.status},
            )

        lop = to_decimal(lop_days if lop_days is not None else record.lop_days)
        allowances = to_decimal(
            other_allowances if other_allowances is not None else record.other_allowances
        )
        deductions = to_decimal(
            other_deductions if other_deductions is not None else record.other_deductions
        )
        working_days = to_decimal(record.total_working_days)

        if lop < 0 or lop > working_days:
            raise ValidationError(
                f"LOP days must be between 0 and {working_days}",
                {"lop_days": str(lop), "total_working_days": str(working_days)},
            )
        if allowances < 0 or deductions < 0:
            raise ValidationError(
                "Allowances and deductions must be non-negative",
                {"other_allowances": str(allowances), "other_deductions": str(deductions)},
            )

        figures = recalculate(
            record,
            total_working_days=working_days,
            lop_days=lop,
            other_allowances=allowances,
            other_deductions=deductions,
            lop_day_divisor=self.settings.lop_day_divisor,
        )
        record.lop_days = figures.lop_days
        record.present_days = figures.present_days
        record.lop_deduction = figures.lop_deduction
        record.other_allowances = figures.other_allowances
        record.other_deductions = figures.other_deductions
        record.gross_salary = figures.gross_salary
        record.total_deductions = figures.total_deductions
        record.net_salary = figures.net_salary

        logger.info(
            "Recalculated payroll record %s: lop=%s gross=%s deductions=%s net=%s",
            record.id, figures.lop_days, figures.gross_salary,
            figures.total_deductions, figures.net_salary,
        )

    async def _transition(self, record: PayrollRecord, target: PayrollStatus) -> None:
        current = record.status
        PayrollRecordStateMachine.validate_transition(current, target)
        effects = PayrollRecordStateMachine.effects_for(current, target)

        record.status = target.value
        for effect in effects:
            if effect is Effect.STAMP_PROCESSED_AT:
                record.processed_at = utcnow()
            elif effect is Effect.STAMP_PAID_AT:
                record.paid_at = utcnow()
            elif effect is Effect.ACCRUE_EARNED_LEAVE:
                await self._accrue_earned_leave(record)

        logger.info("Payroll record %s: %s -> %s", record.id, current, target.value)

    async def _accrue_earned_leave(self, record: PayrollRecord) -> None:
        el_credit = to_decimal(record.el_credit)
        if el_credit <= 0:
            return

        employee = await self.session.get(Employee, record.employee_id)
        if employee is None:
            raise NotFoundError("Employee", record.employee_id)
        if employee.leave_template_id is None:
            return

        result = await self.session.execute(
            select(LeaveType).where(
                LeaveType.leave_template_id == employee.leave_template_id,
                LeaveType.code == LeaveCode.EARNED.value,
            )
        )
        leave_type = result.scalars().first()
        if leave_type is None:
            logger.error(
                "Earned leave type (EL) missing from template %s; cannot accrue "
                "payroll record %s",
                employee.leave_template_id, record.id,
            )
            raise ConfigurationError(
                "Earned leave type (EL) is not configured for the employee's template",
                {
                    "leave_template_id": employee.leave_template_id,
                    "leave_type_code": LeaveCode.EARNED.value,
                },
            )

        await self.ledger.credit(
            record.employee_id,
            leave_type.id,
            record.year,
            el_credit,
            f"Payroll Accrual {record.period_label}",
        )

    async def _get_for_update(self, record_id: int) -> PayrollRecord:
        result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("PayrollRecord", record_id)
        return record

    @staticmethod
    def _parse_status(status: PayrollStatus | str) -> PayrollStatus:
        try:
            return PayrollStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown payroll status '{status}'",
                {"allowed": [s.value for s in PayrollStatus]},
            ) from None
