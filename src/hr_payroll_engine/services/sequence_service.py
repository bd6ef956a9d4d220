"""Named counters for human-readable identifiers."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.models import SequenceCounter

logger = logging.getLogger(__name__)


class SequenceService:
    """Reserves values from SequenceCounter rows under a row lock.

    Two concurrent reservations on the same name serialize on the counter
    row, so each caller gets a distinct value.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def current(self, name: str) -> int:
        """Last reserved value, 0 if the counter does not exist."""
        counter = await self.session.get(SequenceCounter, name)
        return counter.last_value if counter is not None else 0

    async def reserve_next(self, name: str) -> int:
        """Increment the counter and return the new value."""
        counter = await self._get_or_create(name)
        counter.last_value += 1
        await self.session.flush()

        logger.debug("Reserved %s #%d", name, counter.last_value)
        return counter.last_value

    async def _lock(self, name: str) -> SequenceCounter | None:
        result = await self.session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get_or_create(self, name: str) -> SequenceCounter:
        counter = await self._lock(name)
        if counter is not None:
            return counter

        try:
            async with self.session.begin_nested():
                counter = SequenceCounter(name=name, last_value=0)
                self.session.add(counter)
                await self.session.flush()
        except IntegrityError:
            # Created concurrently; lock the existing row instead
            counter = await self._lock(name)
            if counter is None:
                raise
        return counter
