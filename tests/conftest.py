"""Pytest fixtures for payroll and leave engine tests."""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hr_payroll_engine.calculators.salary_resolver import snapshot_totals
from hr_payroll_engine.models import (
    Base,
    Employee,
    Holiday,
    LeaveTemplate,
    LeaveType,
    SalaryStructure,
)

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# (code, name, annual quota, paid)
STANDARD_POLICY = [
    ("CL", "Casual Leave", Decimal("12"), True),
    ("EL", "Earned Leave", Decimal("15"), True),
    ("SL", "Sick Leave", Decimal("10"), True),
    ("LOP", "Loss of Pay", Decimal("0"), False),
    ("CO", "Comp Off", Decimal("0"), True),
]

# Annual figures; monthly: gross 51600.00, deductions 5800.00, net 45800.00
ANNUAL_SALARY = {
    "basic_salary": Decimal("360000"),
    "hra": Decimal("144000"),
    "da": Decimal("36000"),
    "ta": Decimal("19200"),
    "special_allowance": Decimal("60000"),
    "other_allowances": Decimal("0"),
    "provident_fund": Decimal("43200"),
    "esi": Decimal("0"),
    "professional_tax": Decimal("2400"),
    "income_tax": Decimal("24000"),
    "other_deductions": Decimal("0"),
}


@pytest.fixture
async def engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@dataclass
class LeavePolicy:
    """Seeded leave template and its types keyed by code."""

    template: LeaveTemplate
    types: dict[str, LeaveType]

    def __getitem__(self, code: str) -> LeaveType:
        return self.types[code]


async def seed_policy(
    session: AsyncSession,
    name: str = "Standard",
    policy: list[tuple[str, str, Decimal, bool]] = STANDARD_POLICY,
) -> LeavePolicy:
    template = LeaveTemplate(name=name, description=f"{name} leave policy")
    session.add(template)
    await session.flush()

    types = {}
    for code, type_name, quota, paid in policy:
        leave_type = LeaveType(
            leave_template_id=template.id,
            code=code,
            name=type_name,
            annual_quota=quota,
            is_paid=paid,
            carry_forward=code == "EL",
        )
        session.add(leave_type)
        types[code] = leave_type
    await session.flush()
    return LeavePolicy(template=template, types=types)


@pytest.fixture
async def leave_policy(session) -> LeavePolicy:
    return await seed_policy(session)


EmployeeFactory = Callable[..., Awaitable[Employee]]


@pytest.fixture
def make_employee(session, leave_policy) -> EmployeeFactory:
    """Factory for employees, published with the standard template and salary."""
    counter = itertools.count(1)

    async def _make(
        date_of_joining: date = date(2025, 1, 1),
        status: str = "PUBLISHED",
        template: LeavePolicy | None = leave_policy,
        salary: dict[str, Any] | None = ANNUAL_SALARY,
    ) -> Employee:
        n = next(counter)
        employee = Employee(
            employee_code=f"T{n:03d}",
            first_name="Test",
            last_name=f"Employee {n}",
            date_of_joining=date_of_joining,
            status=status,
            leave_template_id=template.template.id if template is not None else None,
        )
        session.add(employee)
        await session.flush()

        if salary is not None:
            session.add(
                SalaryStructure(
                    employee_id=employee.id,
                    effective_from=date_of_joining,
                    **salary,
                    **snapshot_totals(salary),
                )
            )
            await session.flush()
        return employee

    return _make


@pytest.fixture
async def holidays(session) -> list[Holiday]:
    """A mid-week holiday in March 2026 (Wednesday 11th)."""
    rows = [
        Holiday(holiday_date=date(2026, 1, 26), name="Republic Day", year=2026),
        Holiday(holiday_date=date(2026, 3, 11), name="Company Holiday", year=2026),
    ]
    session.add_all(rows)
    await session.flush()
    return rows
