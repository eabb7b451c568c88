"""Recurring pattern repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.recurring_pattern import RecurrenceSource, RecurringPattern
from kasa.repositories.base import BaseRepository


class RecurringPatternRepository(BaseRepository[RecurringPattern]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, RecurringPattern)

    async def get_by_user(self, user_id: UUID, pattern_id: UUID) -> RecurringPattern | None:
        """Get a pattern only if it belongs to the specified user."""
        result = await self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.id == pattern_id,
                RecurringPattern.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(self, user_id: UUID) -> list[RecurringPattern]:
        """Soonest next occurrence first; patterns without a date last."""
        result = await self.db.execute(
            select(RecurringPattern)
            .where(RecurringPattern.user_id == user_id)
            .order_by(
                RecurringPattern.next_occurrence_date.asc().nulls_last(),
                RecurringPattern.created_at.asc(),
            )
        )
        return list(result.scalars().all())

    async def get_auto_by_user(self, user_id: UUID) -> list[RecurringPattern]:
        result = await self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.user_id == user_id,
                RecurringPattern.source == RecurrenceSource.AUTO,
            )
        )
        return list(result.scalars().all())
