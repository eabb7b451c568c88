"""Reconciliation repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.reconciliation import Reconciliation
from kasa.models.transaction import ImportedTransaction
from kasa.repositories.base import BaseRepository


class ReconciliationRepository(BaseRepository[Reconciliation]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Reconciliation)

    async def get_by_user(self, user_id: UUID, reconciliation_id: UUID) -> Reconciliation | None:
        """Get a reconciliation whose transaction belongs to the user."""
        result = await self.db.execute(
            select(Reconciliation)
            .join(ImportedTransaction, Reconciliation.imported_transaction_id == ImportedTransaction.id)
            .where(
                Reconciliation.id == reconciliation_id,
                ImportedTransaction.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
