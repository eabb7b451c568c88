"""Imported transaction repository with the filters used by the matchers."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.models.transaction import CategorySource, ImportedTransaction, TransactionStatus
from kasa.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[ImportedTransaction]):
    """Repository for ImportedTransaction with user-scoped queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ImportedTransaction)

    async def get_by_user(self, user_id: UUID, transaction_id: UUID) -> ImportedTransaction | None:
        """Get a transaction only if it belongs to the specified user."""
        result = await self.db.execute(
            select(ImportedTransaction).where(
                ImportedTransaction.id == transaction_id,
                ImportedTransaction.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(self, user_id: UUID) -> list[ImportedTransaction]:
        """Get all of a user's transactions, oldest first."""
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(ImportedTransaction.user_id == user_id)
            .order_by(ImportedTransaction.accounting_date.asc(), ImportedTransaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_unreconciled(self, user_id: UUID) -> list[ImportedTransaction]:
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.status == TransactionStatus.UNRECONCILED,
            )
            .order_by(ImportedTransaction.accounting_date.asc())
        )
        return list(result.scalars().all())

    async def get_unreconciled_by_id(
        self, user_id: UUID, transaction_id: UUID
    ) -> ImportedTransaction | None:
        result = await self.db.execute(
            select(ImportedTransaction).where(
                ImportedTransaction.id == transaction_id,
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.status == TransactionStatus.UNRECONCILED,
            )
        )
        return result.scalar_one_or_none()

    async def get_unpaired_transfers(self, user_id: UUID) -> list[ImportedTransaction]:
        """Unpaired transactions whose label mentions a transfer ("VIR"), oldest first."""
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.transfer_peer_id.is_(None),
                ImportedTransaction.label.ilike("%VIR%"),
            )
            .order_by(ImportedTransaction.accounting_date.asc(), ImportedTransaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_without_transfer_label(
        self, user_id: UUID, transaction_ids: list[UUID] | None = None
    ) -> list[ImportedTransaction]:
        query = select(ImportedTransaction).where(
            ImportedTransaction.user_id == user_id,
            ImportedTransaction.transfer_label.is_(None),
        )
        if transaction_ids is not None:
            query = query.where(ImportedTransaction.id.in_(transaction_ids))
        result = await self.db.execute(query.order_by(ImportedTransaction.accounting_date.asc()))
        return list(result.scalars().all())

    async def get_uncategorized(self, user_id: UUID) -> list[ImportedTransaction]:
        """Transactions with no category assigned by any mechanism."""
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.category_source == CategorySource.NONE,
            )
            .order_by(ImportedTransaction.accounting_date.asc(), ImportedTransaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_uncategorized_labels(self, user_id: UUID) -> list[str]:
        result = await self.db.execute(
            select(ImportedTransaction.label).where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.category_source == CategorySource.NONE,
            )
        )
        return list(result.scalars().all())

    async def get_opposite_direction(
        self,
        user_id: UUID,
        account_id: UUID,
        exclude_id: UUID,
        amount: Decimal,
        want_credit: bool,
        limit: int = 200,
    ) -> list[ImportedTransaction]:
        """Transactions on an account with the same amount in the other direction."""
        amount_column = ImportedTransaction.credit if want_credit else ImportedTransaction.debit
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.account_id == account_id,
                ImportedTransaction.id != exclude_id,
                amount_column == amount,
            )
            .order_by(ImportedTransaction.accounting_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_debits(self, user_id: UUID) -> list[ImportedTransaction]:
        """All of a user's debits, oldest first."""
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.debit.is_not(None),
            )
            .order_by(ImportedTransaction.accounting_date.asc(), ImportedTransaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_by_recurring_pattern(
        self, user_id: UUID, pattern_ids: list[UUID]
    ) -> list[ImportedTransaction]:
        """Transactions attached to any of the given patterns, newest first."""
        result = await self.db.execute(
            select(ImportedTransaction)
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.recurring_pattern_id.in_(pattern_ids),
            )
            .order_by(ImportedTransaction.accounting_date.desc(), ImportedTransaction.created_at.desc())
        )
        return list(result.scalars().all())

    async def detach_recurring_pattern(self, pattern_id: UUID) -> None:
        """Clear the pattern link on its transactions (not committed)."""
        await self.db.execute(
            update(ImportedTransaction)
            .where(ImportedTransaction.recurring_pattern_id == pattern_id)
            .values(recurring_pattern_id=None)
        )

    async def count_by_transfer_label_rule(self, user_id: UUID) -> dict[UUID, int]:
        result = await self.db.execute(
            select(
                ImportedTransaction.transfer_label_rule_id,
                func.count(ImportedTransaction.id).label("total"),
            )
            .where(
                ImportedTransaction.user_id == user_id,
                ImportedTransaction.transfer_label_rule_id.is_not(None),
            )
            .group_by(ImportedTransaction.transfer_label_rule_id)
        )
        return {row.transfer_label_rule_id: int(row.total) for row in result}
