"""Compensatory-off workflow.

An employee claims a comp-off for a day worked outside the normal schedule.
Approval activates the claim and credits one day of CO leave.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.types import LeaveCode
from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hr_payroll_engine.models import CompOffRecord, Employee, LeaveType
from hr_payroll_engine.services.ledger_service import LeaveLedgerService
from hr_payroll_engine.services.state_machine import (
    CompOffStateMachine,
    CompOffStatus,
    Effect,
)

logger = logging.getLogger(__name__)


class CompOffService:
    """Requests and approves comp-off claims."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.ledger = LeaveLedgerService(session, self.settings)

    async def request(
        self,
        employee_id: int,
        worked_date: date,
        reason: str | None = None,
        as_of: date | None = None,
    ) -> CompOffRecord:
        """Create a PENDING claim expiring COMPOFF_EXPIRY_DAYS from today.

        Raises:
            NotFoundError: Unknown employee
            ValidationError: worked_date is in the future
            ConflictError: An open claim already exists for worked_date
        """
        today = as_of or date.today()

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if worked_date > today:
            raise ValidationError(
                "Cannot claim comp-off for a future date",
                {"worked_date": worked_date.isoformat()},
            )

        open_statuses = [s.value for s in CompOffStateMachine.OPEN]
        result = await self.session.execute(
            select(CompOffRecord.id).where(
                CompOffRecord.employee_id == employee_id,
                CompOffRecord.worked_date == worked_date,
                CompOffRecord.status.in_(open_statuses),
            )
        )
        existing_id = result.scalars().first()
        if existing_id is not None:
            raise ConflictError(
                f"Comp-off already claimed for {worked_date.isoformat()}",
                {"comp_off_id": existing_id, "worked_date": worked_date.isoformat()},
            )

        record = CompOffRecord(
            employee_id=employee_id,
            worked_date=worked_date,
            reason=reason,
            expiry_date=today + timedelta(days=self.settings.compoff_expiry_days),
            status=CompOffStatus.PENDING.value,
        )
        self.session.add(record)
        await self.session.flush()

        logger.info(
            "Comp-off %s requested by employee %s for %s", record.id, employee_id, worked_date
        )
        return record

    async def approve(self, record_id: int, as_of: date | None = None) -> CompOffRecord:
        """Activate a PENDING claim and credit its days as CO leave.

        The credit lands in the current year's CO balance. Status change
        and credit are one atomic unit.

        Raises:
            NotFoundError: Unknown record or employee
            ConflictError: Record is not PENDING
            ConfigurationError: No CO leave type is configured
        """
        year = (as_of or date.today()).year

        async with atomic(self.session):
            record = await self._get_for_update(record_id)
            current = record.status
            if current != CompOffStatus.PENDING:
                raise ConflictError(
                    f"Comp-off {record_id} is already {current}",
                    {"comp_off_id": record_id, "status": current},
                )

            effects = CompOffStateMachine.effects_for(current, CompOffStatus.ACTIVE)
            record.status = CompOffStatus.ACTIVE.value
            for effect in effects:
                if effect is Effect.CREDIT_COMP_OFF:
                    await self._credit(record, year)
            await self.session.flush()

        logger.info("Comp-off %s approved for employee %s", record_id, record.employee_id)
        return record

    async def list_records(
        self,
        employee_id: int | None = None,
        status: str | None = None,
    ) -> list[CompOffRecord]:
        stmt = select(CompOffRecord)
        if employee_id is not None:
            stmt = stmt.where(CompOffRecord.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(CompOffRecord.status == status)
        result = await self.session.execute(stmt.order_by(CompOffRecord.worked_date.desc()))
        return list(result.scalars().all())

    async def _credit(self, record: CompOffRecord, year: int) -> None:
        leave_type = await self._comp_off_type(record.employee_id)
        await self.ledger.credit(
            record.employee_id,
            leave_type.id,
            year,
            record.credited_days,
            f"Comp-Off Approved: {record.reason or ''}".rstrip(),
        )

    async def _comp_off_type(self, employee_id: int) -> LeaveType:
        """CO type from the employee's template, else any CO type."""
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        stmt = select(LeaveType).where(LeaveType.code == LeaveCode.COMP_OFF.value)
        if employee.leave_template_id is not None:
            result = await self.session.execute(
                stmt.where(LeaveType.leave_template_id == employee.leave_template_id)
            )
            leave_type = result.scalars().first()
            if leave_type is not None:
                return leave_type

        result = await self.session.execute(stmt.order_by(LeaveType.id))
        leave_type = result.scalars().first()
        if leave_type is None:
            logger.error(
                "Comp-off leave type (CO) is not configured; cannot credit employee %s",
                employee_id,
            )
            raise ConfigurationError(
                "Comp-off leave type (CO) is not configured",
                {"leave_type_code": LeaveCode.COMP_OFF.value},
            )
        return leave_type

    async def _get_for_update(self, record_id: int) -> CompOffRecord:
        result = await self.session.execute(
            select(CompOffRecord)
            .where(CompOffRecord.id == record_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("CompOffRecord", record_id)
        return record
