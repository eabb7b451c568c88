"""Internal transfer detection.

A transfer between two of a user's accounts shows up as a "VIR" debit on one
account and a "VIR" credit of the same amount on the other, a few days apart.
Pairs are linked both ways through ``transfer_peer_id``; both sides are always
written in one database transaction.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, Protocol, Sequence
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.core.exceptions import PeerNotFoundError
from kasa.db.commit import commit_paired_write
from kasa.models.transaction import ImportedTransaction
from kasa.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

TRANSFER_WINDOW_DAYS = 3
MAX_CANDIDATES = 200


class TransferLike(Protocol):
    id: UUID
    account_id: UUID
    accounting_date: date
    debit: Decimal | None
    credit: Decimal | None


class TransferCandidate(BaseModel):
    """A transaction the user may pick as the other side of a transfer."""

    id: UUID
    label: str
    accounting_date: date
    amount: Decimal
    direction: Literal["debit", "credit"]
    account_label: str
    linked_to_account_label: str | None = None


def find_matching_credit(
    debit: TransferLike, credits: Sequence[TransferLike], used_ids: set[UUID]
) -> UUID | None:
    """First unused credit on another account with the same amount within the window."""
    for credit in credits:
        if credit.id in used_ids:
            continue
        if credit.account_id == debit.account_id:
            continue
        if debit.debit is None or credit.credit is None or Decimal(debit.debit) != Decimal(credit.credit):
            continue
        if abs((debit.accounting_date - credit.accounting_date).days) > TRANSFER_WINDOW_DAYS:
            continue
        return credit.id
    return None


def pair_transfers(transactions: Sequence[TransferLike]) -> list[tuple[UUID, UUID]]:
    """Greedily pair debits with credits.

    Each debit, in the given (date) order, takes the first eligible credit.
    This is not a global optimum: with several same-amount transfers on the
    same day, the earliest debit wins the earliest credit.

    Returns:
        (debit id, credit id) pairs
    """
    debits = [t for t in transactions if t.debit is not None]
    credits = [t for t in transactions if t.credit is not None]
    used: set[UUID] = set()
    pairs = []

    for debit in debits:
        credit_id = find_matching_credit(debit, credits, used)
        if credit_id is None:
            continue
        used.add(credit_id)
        pairs.append((debit.id, credit_id))
    return pairs


class TransferDetectionService:
    """Detects and edits transfer pairs."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)

    async def detect_transfer_pairs(self, user_id: UUID) -> list[tuple[UUID, UUID]]:
        """Link unpaired VIR debits and credits across the user's accounts.

        Returns:
            The (debit id, credit id) pairs that were linked
        """
        transactions = await self.transaction_repo.get_unpaired_transfers(user_id)
        by_id = {t.id: t for t in transactions}
        pairs = pair_transfers(transactions)

        for debit_id, credit_id in pairs:
            await self._link_pair(by_id[debit_id], by_id[credit_id])

        logger.info(
            "Transfer detection complete",
            extra={"user_id": user_id, "pairs_linked": len(pairs)},
        )
        return pairs

    async def list_transfer_candidates(
        self, user_id: UUID, transaction_id: UUID, account_id: UUID
    ) -> list[TransferCandidate]:
        """Same-amount, opposite-direction transactions on an account, newest first."""
        tx = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if tx is None or tx.amount is None:
            return []

        candidates = await self.transaction_repo.get_opposite_direction(
            user_id,
            account_id,
            exclude_id=tx.id,
            amount=tx.amount,
            want_credit=tx.debit is not None,
            limit=MAX_CANDIDATES,
        )

        results = []
        for candidate in candidates:
            linked_to = None
            if candidate.transfer_peer_id is not None and candidate.transfer_peer_id != tx.id:
                peer = await self.transaction_repo.get_by_id(candidate.transfer_peer_id)
                linked_to = peer.account.label if peer is not None else None
            results.append(
                TransferCandidate(
                    id=candidate.id,
                    label=candidate.label,
                    accounting_date=candidate.accounting_date,
                    amount=candidate.amount,
                    direction="debit" if candidate.debit is not None else "credit",
                    account_label=candidate.account.label,
                    linked_to_account_label=linked_to,
                )
            )
        return results

    async def update_transfer_peer(
        self, user_id: UUID, transaction_id: UUID, new_peer_id: UUID | None
    ) -> ImportedTransaction | None:
        """Link a transaction to a peer chosen by hand, or unlink it.

        Symmetry is kept for every transaction touched: the previous peer is
        unlinked, or relinked to the new peer's previous peer when both
        existed.

        Returns:
            The updated transaction, or None if it isn't the user's

        Raises:
            PeerNotFoundError: If the new peer isn't one of the user's transactions
        """
        tx = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if tx is None:
            return None

        new_peer = None
        if new_peer_id is not None:
            new_peer = await self.transaction_repo.get_by_user(user_id, new_peer_id)
            if new_peer is None or new_peer.id == tx.id:
                raise PeerNotFoundError({"peer_id": str(new_peer_id)})

        old_peer = await self._get_peer(tx)
        try:
            if new_peer is None:
                if old_peer is not None:
                    old_peer.transfer_peer_id = None
                tx.transfer_peer_id = None
            else:
                orphan = await self._get_peer(new_peer)
                if orphan is not None and orphan.id == tx.id:
                    orphan = None
                if old_peer is not None and old_peer.id != new_peer.id:
                    if orphan is not None:
                        old_peer.transfer_peer_id = orphan.id
                        orphan.transfer_peer_id = old_peer.id
                    else:
                        old_peer.transfer_peer_id = None
                elif orphan is not None:
                    orphan.transfer_peer_id = None
                tx.transfer_peer_id = new_peer.id
                new_peer.transfer_peer_id = tx.id
        except Exception:
            await self.db.rollback()
            raise
        await commit_paired_write(self.db, "update_transfer_peer")

        await self.db.refresh(tx)
        return tx

    async def _get_peer(self, tx: ImportedTransaction) -> ImportedTransaction | None:
        if tx.transfer_peer_id is None:
            return None
        return await self.transaction_repo.get_by_id(tx.transfer_peer_id)

    async def _link_pair(self, debit: ImportedTransaction, credit: ImportedTransaction) -> None:
        debit.transfer_peer_id = credit.id
        credit.transfer_peer_id = debit.id
        await commit_paired_write(self.db, "link_transfer_pair")
