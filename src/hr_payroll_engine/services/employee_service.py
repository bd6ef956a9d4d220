"""Employee lifecycle and employee code reservation."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import NotFoundError, ValidationError
from hr_payroll_engine.models import Employee
from hr_payroll_engine.services.sequence_service import SequenceService
from hr_payroll_engine.services.state_machine import (
    EmployeeStateMachine,
    EmployeeStatus,
)

logger = logging.getLogger(__name__)

EMPLOYEE_CODE_SEQUENCE = "employee_code"


class EmployeeService:
    """Employee code allocation and status transitions."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.sequences = SequenceService(session)

    def format_code(self, value: int) -> str:
        """EMP001, EMP002, ... EMP1000 once the width is exceeded."""
        prefix = self.settings.employee_code_prefix
        return f"{prefix}{value:0{self.settings.employee_code_width}d}"

    async def next_employee_code(self) -> str:
        """Reserve the next employee code."""
        value = await self.sequences.reserve_next(EMPLOYEE_CODE_SEQUENCE)
        return self.format_code(value)

    async def get_employee(self, employee_id: int) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def list_employees(self, status: str | None = None) -> list[Employee]:
        stmt = select(Employee)
        if status is not None:
            stmt = stmt.where(Employee.status == status)
        result = await self.session.execute(stmt.order_by(Employee.employee_code))
        return list(result.scalars().all())

    async def publish(self, employee_id: int) -> Employee:
        """DRAFT -> PUBLISHED. Publishing a published employee is a no-op."""
        async with atomic(self.session):
            employee = await self._get_for_update(employee_id)
            if employee.status == EmployeeStatus.PUBLISHED:
                return employee

            EmployeeStateMachine.validate_transition(employee.status, EmployeeStatus.PUBLISHED)
            employee.status = EmployeeStatus.PUBLISHED.value
            await self.session.flush()

        logger.info("Published employee %s", employee.employee_code)
        return employee

    async def separate(
        self,
        employee_id: int,
        status: EmployeeStatus | str,
        date_of_leaving: date,
    ) -> Employee:
        """Move a published employee to RESIGNED, TERMINATED or ABSCONDING.

        Raises:
            ValidationError: status is not a separation status, or
                date_of_leaving precedes date_of_joining
            InvalidTransitionError: Employee is not PUBLISHED
        """
        try:
            target = EmployeeStatus(status)
        except ValueError:
            target = None
        if target not in EmployeeStateMachine.SEPARATED:
            raise ValidationError(
                f"'{status}' is not a separation status",
                {"allowed": sorted(s.value for s in EmployeeStateMachine.SEPARATED)},
            )

        async with atomic(self.session):
            employee = await self._get_for_update(employee_id)
            EmployeeStateMachine.validate_transition(employee.status, target)
            if date_of_leaving < employee.date_of_joining:
                raise ValidationError(
                    "date_of_leaving cannot precede date_of_joining",
                    {
                        "date_of_leaving": date_of_leaving.isoformat(),
                        "date_of_joining": employee.date_of_joining.isoformat(),
                    },
                )
            employee.status = target.value
            employee.date_of_leaving = date_of_leaving
            await self.session.flush()

        logger.info(
            "Employee %s separated: %s on %s",
            employee.employee_code, target.value, date_of_leaving,
        )
        return employee

    async def _get_for_update(self, employee_id: int) -> Employee:
        result = await self.session.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee
