"""Leave application workflow.

Submission validates the date range, counts chargeable days against the
holiday calendar, rejects overlapping requests and checks the balance for
paid leave types. Approval debits the ledger in the same atomic unit as the
status change.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.day_count import count_leave_days
from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from hr_payroll_engine.models import Employee, LeaveApplication, LeaveType
from hr_payroll_engine.services.holiday_service import HolidayService
from hr_payroll_engine.services.ledger_service import LeaveLedgerService
from hr_payroll_engine.services.state_machine import (
    Effect,
    LeaveApplicationStateMachine,
    LeaveStatus,
)

logger = logging.getLogger(__name__)


class LeaveApplicationService:
    """Submits and decides leave applications."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.ledger = LeaveLedgerService(session, self.settings)
        self.holidays = HolidayService(session)

    async def apply(
        self,
        employee_id: int,
        leave_type_id: int,
        from_date: date,
        to_date: date,
        reason: str | None = None,
        from_half_day: bool = False,
        to_half_day: bool = False,
    ) -> LeaveApplication:
        """Submit a leave application.

        Args:
            employee_id: Applicant
            leave_type_id: Leave type being requested
            from_date: First day of leave (inclusive)
            to_date: Last day of leave (inclusive)
            reason: Free text shown to approvers
            from_half_day: First day is a half day
            to_half_day: Last day is a half day

        Returns:
            The PENDING application with total_days computed

        Raises:
            ValidationError: Inverted range, or no working days in range
            NotFoundError: Unknown employee or leave type
            ConflictError: Overlaps an open or approved application
            InsufficientBalanceError: Paid leave exceeds the closing balance
        """
        if from_date > to_date:
            raise ValidationError(
                "from_date must be on or before to_date",
                {"from_date": from_date.isoformat(), "to_date": to_date.isoformat()},
            )

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        leave_type = await self.session.get(LeaveType, leave_type_id)
        if leave_type is None:
            raise NotFoundError("LeaveType", leave_type_id)

        calendar = await self.holidays.calendar_for(from_date, to_date)
        total_days = count_leave_days(
            from_date,
            to_date,
            calendar,
            from_half_day=from_half_day,
            to_half_day=to_half_day,
        )
        if total_days <= 0:
            raise ValidationError(
                "Selected dates are all holidays or weekends",
                {"from_date": from_date.isoformat(), "to_date": to_date.isoformat()},
            )

        conflict = await self._find_overlap(employee_id, from_date, to_date)
        if conflict is not None:
            raise ConflictError(
                f"Leave already applied for overlapping dates "
                f"({conflict.from_date.isoformat()} to {conflict.to_date.isoformat()})",
                {
                    "conflicting_application_id": conflict.id,
                    "conflicting_from_date": conflict.from_date.isoformat(),
                    "conflicting_to_date": conflict.to_date.isoformat(),
                },
            )

        if leave_type.is_paid:
            balance = await self.ledger.get_balance(
                employee_id, leave_type_id, from_date.year
            )
            available = balance.closing if balance is not None else Decimal("0")
            if available < total_days:
                raise InsufficientBalanceError(required=total_days, available=available)

        application = LeaveApplication(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            from_date=from_date,
            to_date=to_date,
            from_half_day=from_half_day,
            to_half_day=to_half_day,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.PENDING.value,
        )
        self.session.add(application)
        await self.session.flush()

        logger.info(
            "Leave application %s submitted: employee %s, %s %s..%s (%s day(s))",
            application.id, employee_id, leave_type.code, from_date, to_date, total_days,
        )
        return application

    async def decide(self, application_id: int, status: LeaveStatus | str) -> LeaveApplication:
        """Move an application to a new status.

        Entering APPROVED debits total_days from the balance of the
        leave's start year. The status change and the debit commit or
        roll back together.

        Raises:
            NotFoundError: Unknown application
            InvalidTransitionError: Transition not allowed from current status
        """
        target = self._parse_status(status)

        async with atomic(self.session):
            application = await self._get_for_update(application_id)
            current = application.status

            LeaveApplicationStateMachine.validate_transition(current, target)
            effects = LeaveApplicationStateMachine.effects_for(current, target)

            application.status = target.value
            for effect in effects:
                if effect is Effect.DEBIT_LEAVE_BALANCE:
                    await self._debit_balance(application)
            await self.session.flush()

        logger.info(
            "Leave application %s: %s -> %s", application_id, current, target.value
        )
        return application

    async def approve(self, application_id: int) -> LeaveApplication:
        return await self.decide(application_id, LeaveStatus.APPROVED)

    async def reject(self, application_id: int) -> LeaveApplication:
        return await self.decide(application_id, LeaveStatus.REJECTED)

    async def get_application(self, application_id: int) -> LeaveApplication:
        application = await self.session.get(LeaveApplication, application_id)
        if application is None:
            raise NotFoundError("LeaveApplication", application_id)
        return application

    async def list_applications(
        self,
        employee_id: int | None = None,
        status: LeaveStatus | str | None = None,
    ) -> list[LeaveApplication]:
        """Applications, newest first, optionally filtered."""
        stmt = select(LeaveApplication)
        if employee_id is not None:
            stmt = stmt.where(LeaveApplication.employee_id == employee_id)
        if status is not None:
            stmt = stmt.where(LeaveApplication.status == self._parse_status(status).value)
        result = await self.session.execute(
            stmt.order_by(LeaveApplication.from_date.desc(), LeaveApplication.id.desc())
        )
        return list(result.scalars().all())

    async def _find_overlap(
        self,
        employee_id: int,
        from_date: date,
        to_date: date,
    ) -> LeaveApplication | None:
        occupying = [s.value for s in LeaveApplicationStateMachine.OCCUPYING]
        result = await self.session.execute(
            select(LeaveApplication)
            .where(
                LeaveApplication.employee_id == employee_id,
                LeaveApplication.status.in_(occupying),
                LeaveApplication.from_date <= to_date,
                LeaveApplication.to_date >= from_date,
            )
            .order_by(LeaveApplication.from_date)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_for_update(self, application_id: int) -> LeaveApplication:
        result = await self.session.execute(
            select(LeaveApplication)
            .where(LeaveApplication.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("LeaveApplication", application_id)
        return application

    async def _debit_balance(self, application: LeaveApplication) -> None:
        year = application.from_date.year
        try:
            await self.ledger.debit(
                application.employee_id,
                application.leave_type_id,
                year,
                application.total_days,
                f"Leave Approved (#{application.id})",
            )
        except InsufficientBalanceError:
            if self.settings.strict_leave_debit:
                raise
            logger.warning(
                "No leave balance for employee %s, leave type %s, year %s; "
                "approving application %s without a debit",
                application.employee_id, application.leave_type_id, year, application.id,
            )

    @staticmethod
    def _parse_status(status: LeaveStatus | str) -> LeaveStatus:
        try:
            return LeaveStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown leave status '{status}'",
                {"allowed": [s.value for s in LeaveStatus]},
            ) from None
