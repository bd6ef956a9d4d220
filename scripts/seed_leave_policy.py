"""Seed script for the standard leave policy and holiday calendar.

Run with:
    python scripts/seed_leave_policy.py
    python scripts/seed_leave_policy.py --create-schema

This creates the leave template, its leave types (CL, EL, SL, LOP, CO)
and the company holidays needed by the leave and payroll engine. Existing
rows are left untouched, so the script can be re-run.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.database import dispose_db, get_session, init_db
from hr_payroll_engine.models import Base, Holiday, LeaveTemplate, LeaveType

TEMPLATE_NAME = "Standard Policy 2026"

LEAVE_TYPES = [
    # code, name, annual quota, paid, carry forward
    ("CL", "Casual Leave", Decimal("12"), True, False),
    ("EL", "Earned Leave", Decimal("15"), True, True),
    ("SL", "Sick Leave", Decimal("10"), True, False),
    ("LOP", "Loss of Pay", Decimal("365"), False, False),
    ("CO", "Compensatory Off", Decimal("0"), True, False),
]

HOLIDAYS = [
    (date(2026, 1, 26), "Republic Day"),
    (date(2026, 3, 6), "Holi"),
    (date(2026, 8, 15), "Independence Day"),
    (date(2026, 10, 2), "Gandhi Jayanti"),
    (date(2026, 10, 31), "Diwali"),
    (date(2026, 12, 25), "Christmas"),
]


async def seed_template(session: AsyncSession) -> LeaveTemplate:
    """Create the standard template and its leave types."""
    result = await session.execute(
        select(LeaveTemplate).where(LeaveTemplate.name == TEMPLATE_NAME)
    )
    template = result.scalar_one_or_none()

    if template is None:
        template = LeaveTemplate(
            name=TEMPLATE_NAME,
            description="Standard leave policy for all employees in 2026",
            is_active=True,
        )
        session.add(template)
        await session.flush()
        print(f"Created leave template: {TEMPLATE_NAME}")
    else:
        print(f"Leave template {TEMPLATE_NAME} already exists")

    result = await session.execute(
        select(LeaveType.code).where(LeaveType.leave_template_id == template.id)
    )
    existing = set(result.scalars().all())

    for code, name, quota, paid, carry_forward in LEAVE_TYPES:
        if code in existing:
            print(f"  {code} already exists, skipping...")
            continue
        session.add(
            LeaveType(
                leave_template_id=template.id,
                code=code,
                name=name,
                annual_quota=quota,
                is_paid=paid,
                carry_forward=carry_forward,
            )
        )
        print(f"  Created leave type {code} ({name}, {quota} day(s)/year)")

    await session.flush()
    return template


async def seed_holidays(session: AsyncSession) -> None:
    """Create company holidays."""
    result = await session.execute(select(Holiday.holiday_date))
    existing = set(result.scalars().all())

    for holiday_date, name in HOLIDAYS:
        if holiday_date in existing:
            continue
        session.add(Holiday(holiday_date=holiday_date, name=name, year=holiday_date.year))
        print(f"Created holiday {holiday_date.isoformat()} {name}")

    await session.flush()


async def create_schema() -> None:
    engine, _ = init_db()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Schema created")


async def main(args: argparse.Namespace) -> None:
    """Run all seed functions."""
    if args.create_schema:
        await create_schema()

    print("Seeding leave policy...")

    async with get_session() as session:
        await seed_template(session)
        await seed_holidays(session)

    await dispose_db()
    print("\nDone! Leave policy seeded successfully.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the standard leave policy")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create tables before seeding",
    )
    asyncio.run(main(parser.parse_args()))
