"""Manual expense repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.manual_expense import ManualExpense
from kasa.models.reconciliation import Reconciliation
from kasa.repositories.base import BaseRepository


class ManualExpenseRepository(BaseRepository[ManualExpense]):
    """Repository for ManualExpense with reconciliation-aware filters."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ManualExpense)

    def _unlinked(self, user_id: UUID):
        linked = select(Reconciliation.manual_expense_id)
        return select(ManualExpense).where(
            ManualExpense.user_id == user_id,
            ManualExpense.id.not_in(linked),
        )

    async def get_unlinked(self, user_id: UUID) -> list[ManualExpense]:
        """Expenses of a user that no reconciliation points at."""
        result = await self.db.execute(self._unlinked(user_id).order_by(ManualExpense.date.asc()))
        return list(result.scalars().all())

    async def get_unlinked_by_id(self, user_id: UUID, expense_id: UUID) -> ManualExpense | None:
        result = await self.db.execute(
            self._unlinked(user_id).where(ManualExpense.id == expense_id)
        )
        return result.scalar_one_or_none()
