"""Reconciliation of imported transactions against manual expenses.

A transaction moves UNRECONCILED -> RECONCILED when a Reconciliation record
links it to an expense (automatically or by user confirmation) and back when
that record is undone. The record and the status flip are always written in
the same database transaction.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, Protocol, Sequence
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.db.commit import commit_paired_write
from kasa.matching.bank_label import match_bank_label
from kasa.models.reconciliation import Reconciliation
from kasa.models.transaction import ImportedTransaction, TransactionStatus
from kasa.repositories.manual_expense import ManualExpenseRepository
from kasa.repositories.reconciliation import ReconciliationRepository
from kasa.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.001")
DATE_TOLERANCE_DAYS = 3
PLAUSIBLE_OR_BETTER = ("high", "plausible")


class TransactionLike(Protocol):
    label: str
    debit: Decimal | None
    credit: Decimal | None
    accounting_date: date


class ExpenseLike(Protocol):
    id: UUID
    label: str
    amount: Decimal
    date: date


class ReconciliationCandidate(BaseModel):
    expense_id: UUID
    score: float
    confidence: Literal["high", "plausible", "weak"]


class ReconciliationResult(BaseModel):
    """Outcome of a reconciliation pass."""

    auto_reconciled: list[UUID] = Field(default_factory=list)
    awaiting_review: list[UUID] = Field(
        default_factory=list,
        description="Transactions with several plausible expenses; not persisted",
    )


def _transaction_amount(tx: TransactionLike) -> Decimal | None:
    if tx.debit is not None:
        return Decimal(tx.debit)
    if tx.credit is not None:
        return Decimal(tx.credit)
    return None


def score_expense_match(
    tx: TransactionLike, expense: ExpenseLike, tx_amount: Decimal
) -> ReconciliationCandidate | None:
    if abs(tx_amount - Decimal(expense.amount)) > AMOUNT_TOLERANCE:
        return None
    if abs((tx.accounting_date - expense.date).days) > DATE_TOLERANCE_DAYS:
        return None
    match = match_bank_label(tx.label, expense.label)
    if match.confidence == "none":
        return None
    return ReconciliationCandidate(
        expense_id=expense.id, score=match.score, confidence=match.confidence
    )


def compute_reconciliation_candidates(
    tx: TransactionLike, expenses: Sequence[ExpenseLike]
) -> list[ReconciliationCandidate]:
    """Score a transaction against expenses.

    Expenses with a different amount, more than 3 days apart, or an unrelated
    label are discarded.

    Returns:
        Candidates sorted by score, best first
    """
    tx_amount = _transaction_amount(tx)
    if tx_amount is None:
        return []

    candidates = []
    for expense in expenses:
        candidate = score_expense_match(tx, expense, tx_amount)
        if candidate is not None:
            candidates.append(candidate)
    return sorted(candidates, key=lambda c: c.score, reverse=True)


class ReconciliationService:
    """Links imported transactions to the manual expenses they pay for."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.expense_repo = ManualExpenseRepository(db)
        self.reconciliation_repo = ReconciliationRepository(db)

    async def run_reconciliation(self, user_id: UUID) -> ReconciliationResult:
        """Auto-link every unreconciled transaction with a unique high-confidence expense.

        Transactions with more than one plausible expense are reported for
        review; everything else stays untouched.
        """
        transactions = await self.transaction_repo.get_unreconciled(user_id)
        expenses = await self.expense_repo.get_unlinked(user_id)
        result = ReconciliationResult()
        linked_expenses: set[UUID] = set()

        for tx in transactions:
            available = [e for e in expenses if e.id not in linked_expenses]
            candidates = compute_reconciliation_candidates(tx, available)

            high = [c for c in candidates if c.confidence == "high"]
            if len(high) == 1:
                await self._link(tx, high[0].expense_id, high[0].score, is_auto_matched=True)
                linked_expenses.add(high[0].expense_id)
                result.auto_reconciled.append(tx.id)
            elif len([c for c in candidates if c.confidence in PLAUSIBLE_OR_BETTER]) > 1:
                result.awaiting_review.append(tx.id)

        logger.info(
            "Reconciliation pass complete",
            extra={
                "user_id": user_id,
                "auto_reconciled": len(result.auto_reconciled),
                "awaiting_review": len(result.awaiting_review),
            },
        )
        return result

    async def get_candidates(
        self, user_id: UUID, transaction_id: UUID
    ) -> list[ReconciliationCandidate]:
        """Candidates for one unreconciled transaction, for the review screen."""
        tx = await self.transaction_repo.get_unreconciled_by_id(user_id, transaction_id)
        if tx is None:
            return []
        expenses = await self.expense_repo.get_unlinked(user_id)
        return compute_reconciliation_candidates(tx, expenses)

    async def confirm_reconciliation(
        self, user_id: UUID, transaction_id: UUID, expense_id: UUID
    ) -> Reconciliation | None:
        """Link a transaction to an expense chosen by the user.

        Returns:
            The new reconciliation, or None if either side is missing, not
            the user's, or already linked
        """
        tx = await self.transaction_repo.get_unreconciled_by_id(user_id, transaction_id)
        expense = await self.expense_repo.get_unlinked_by_id(user_id, expense_id)
        if tx is None or expense is None:
            return None

        match = match_bank_label(tx.label, expense.label)
        return await self._link(tx, expense.id, match.score, is_auto_matched=False)

    async def undo_reconciliation(self, user_id: UUID, reconciliation_id: UUID) -> bool:
        """Delete a reconciliation and flip its transaction back to UNRECONCILED."""
        reconciliation = await self.reconciliation_repo.get_by_user(user_id, reconciliation_id)
        if reconciliation is None:
            return False

        tx = await self.transaction_repo.get_by_id(reconciliation.imported_transaction_id)
        tx.status = TransactionStatus.UNRECONCILED
        await self.db.delete(reconciliation)
        await commit_paired_write(self.db, "undo_reconciliation")
        return True

    async def _link(
        self,
        tx: ImportedTransaction,
        expense_id: UUID,
        score: float,
        is_auto_matched: bool,
    ) -> Reconciliation:
        reconciliation = Reconciliation(
            imported_transaction_id=tx.id,
            manual_expense_id=expense_id,
            confidence_score=score,
            is_auto_matched=is_auto_matched,
        )
        self.db.add(reconciliation)
        tx.status = TransactionStatus.RECONCILED
        await commit_paired_write(self.db, "link_reconciliation")
        await self.db.refresh(reconciliation)
        return reconciliation
