"""Fixtures for API tests.

The app's session dependency is overridden to use the test engine. Seed
data is committed through its own session so request sessions see it.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.api.app import create_app
from hr_payroll_engine.api.dependencies import get_db_session
from hr_payroll_engine.calculators.salary_resolver import snapshot_totals
from hr_payroll_engine.models import Employee, SalaryStructure

from tests.conftest import ANNUAL_SALARY, seed_policy


@dataclass
class SeedData:
    employee_id: int
    leave_type_ids: dict[str, int]


@pytest.fixture
async def seeded(session_factory) -> SeedData:
    """One published employee on the standard policy with a salary."""
    async with session_factory() as session:
        policy = await seed_policy(session)
        employee = Employee(
            employee_code="EMP900",
            first_name="Asha",
            last_name="Rao",
            date_of_joining=date(2025, 1, 1),
            status="PUBLISHED",
            leave_template_id=policy.template.id,
        )
        session.add(employee)
        await session.flush()
        session.add(
            SalaryStructure(
                employee_id=employee.id,
                effective_from=date(2025, 1, 1),
                **ANNUAL_SALARY,
                **snapshot_totals(ANNUAL_SALARY),
            )
        )
        await session.commit()
        return SeedData(
            employee_id=employee.id,
            leave_type_ids={code: t.id for code, t in policy.types.items()},
        )


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
