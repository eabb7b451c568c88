"""Recurring payment detection.

Debits are grouped by normalized label. A group becomes a pattern when the
median gap between its dates is close to a week, a month or a year, and its
amounts barely vary. Detection only ever touches AUTO patterns; patterns the
user created by hand are left alone.
"""

import logging
import statistics
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.matching.normalize import normalize
from kasa.models.recurring_pattern import RecurrenceFrequency, RecurrenceSource, RecurringPattern
from kasa.models.transaction import ImportedTransaction
from kasa.repositories.recurring_pattern import RecurringPatternRepository
from kasa.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

FREQUENCY_DAYS = {
    RecurrenceFrequency.WEEKLY: 7,
    RecurrenceFrequency.MONTHLY: 30,
    RecurrenceFrequency.ANNUAL: 365,
}

# Inclusive median-interval ranges, in days.
FREQUENCY_RANGES = (
    (RecurrenceFrequency.WEEKLY, 5, 9),
    (RecurrenceFrequency.MONTHLY, 25, 35),
    (RecurrenceFrequency.ANNUAL, 350, 380),
)

MAX_AMOUNT_VARIATION = 0.1

CENT = Decimal("0.01")


class DebitLike(Protocol):
    id: UUID
    label: str
    debit: Decimal | None
    accounting_date: date


class PatternCandidate(BaseModel):
    keyword: str
    label: str
    frequency: RecurrenceFrequency
    median_amount: Decimal | None
    last_date: date
    transaction_ids: list[UUID]


class RecurringPatternCreate(BaseModel):
    """Input for a pattern created by hand."""

    label: str = Field(min_length=1, max_length=255)
    keyword: str = Field(min_length=1, max_length=255)
    frequency: RecurrenceFrequency
    amount: Decimal | None = None

    @field_validator("label", "keyword", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class RecurringPatternUpdate(BaseModel):
    """Partial update; only the fields that were set are applied."""

    label: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None
    frequency: RecurrenceFrequency | None = None
    next_occurrence_date: date | None = None

    @field_validator("label", mode="before")
    @classmethod
    def strip_label(cls, value):
        return value.strip() if isinstance(value, str) else value


class RecurringPatternRead(BaseModel):
    """A pattern with statistics over its transactions."""

    id: UUID
    label: str
    keyword: str
    amount: Decimal | None
    frequency: RecurrenceFrequency
    source: RecurrenceSource
    is_active: bool
    next_occurrence_date: date | None
    created_at: datetime

    # Statistics
    transaction_count: int = 0
    last_transaction_date: date | None = Field(None, description="Date of the most recent transaction")
    transfer_peer_account_label: str | None = Field(
        None, description="Account on the other side when the latest transaction is a transfer"
    )

    model_config = ConfigDict(from_attributes=True)


def derive_frequency(median_days: float) -> RecurrenceFrequency | None:
    for frequency, low, high in FREQUENCY_RANGES:
        if low <= median_days <= high:
            return frequency
    return None


def amounts_consistent(amounts: Sequence[Decimal | float]) -> bool:
    """True when the coefficient of variation is below 10%.

    Fewer than two amounts are trivially consistent; a zero mean never is.
    """
    if len(amounts) < 2:
        return True
    values = [float(a) for a in amounts]
    mean = statistics.fmean(values)
    if mean == 0:
        return False
    return statistics.pstdev(values) / mean < MAX_AMOUNT_VARIATION


def compute_next_occurrence(last_date: date, frequency: RecurrenceFrequency) -> date:
    return last_date + timedelta(days=FREQUENCY_DAYS[frequency])


def is_still_active(last_date: date, frequency: RecurrenceFrequency, today: date) -> bool:
    """A pattern lapses after two missed periods."""
    return (today - last_date).days <= 2 * FREQUENCY_DAYS[frequency]


def group_by_normalized_label(transactions: Sequence[DebitLike]) -> dict[str, list[DebitLike]]:
    groups: dict[str, list[DebitLike]] = defaultdict(list)
    for tx in transactions:
        key = normalize(tx.label)
        if key:
            groups[key].append(tx)
    return dict(groups)


def build_candidate(keyword: str, transactions: Sequence[DebitLike]) -> PatternCandidate | None:
    """Turn a label group into a pattern candidate, or None if it isn't regular."""
    if len(transactions) < 2:
        return None

    ordered = sorted(transactions, key=lambda t: t.accounting_date)
    intervals = [
        (current.accounting_date - previous.accounting_date).days
        for previous, current in zip(ordered, ordered[1:])
    ]
    frequency = derive_frequency(statistics.median(intervals))
    if frequency is None:
        return None

    amounts = [Decimal(t.debit) for t in ordered if t.debit is not None and t.debit > 0]
    if not amounts_consistent(amounts):
        return None

    median_amount = None
    if amounts:
        median_amount = Decimal(statistics.median(amounts)).quantize(CENT, rounding=ROUND_HALF_UP)

    return PatternCandidate(
        keyword=keyword,
        label=transactions[0].label,
        frequency=frequency,
        median_amount=median_amount,
        last_date=ordered[-1].accounting_date,
        transaction_ids=[t.id for t in ordered],
    )


class RecurringPatternService:
    """Detects recurring debits and manages the user's patterns."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.pattern_repo = RecurringPatternRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def detect_recurring_patterns(self, user_id: UUID, today: date | None = None) -> int:
        """Create or refresh AUTO patterns from the user's debits.

        Matching transactions are attached to their pattern. AUTO patterns
        that no longer match anything are deactivated, but only when at least
        one pattern was detected in this run.

        Returns:
            Number of patterns detected
        """
        today = today or date.today()
        debits = await self.transaction_repo.get_debits(user_id)
        by_id = {tx.id: tx for tx in debits}
        existing = {p.keyword: p for p in await self.pattern_repo.get_auto_by_user(user_id)}
        detected: set[str] = set()

        try:
            for keyword, group in group_by_normalized_label(debits).items():
                candidate = build_candidate(keyword, group)
                if candidate is None:
                    continue

                pattern = await self._upsert(user_id, existing.get(keyword), candidate, today)
                detected.add(keyword)
                for transaction_id in candidate.transaction_ids:
                    by_id[transaction_id].recurring_pattern_id = pattern.id

            if detected:
                for keyword, pattern in existing.items():
                    if keyword not in detected:
                        pattern.is_active = False

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Recurring pattern detection complete",
            extra={"user_id": user_id, "patterns_detected": len(detected)},
        )
        return len(detected)

    async def _upsert(
        self,
        user_id: UUID,
        pattern: RecurringPattern | None,
        candidate: PatternCandidate,
        today: date,
    ) -> RecurringPattern:
        values = {
            "label": candidate.label,
            "amount": candidate.median_amount,
            "frequency": candidate.frequency,
            "is_active": is_still_active(candidate.last_date, candidate.frequency, today),
            "next_occurrence_date": compute_next_occurrence(candidate.last_date, candidate.frequency),
        }
        if pattern is not None:
            for key, value in values.items():
                setattr(pattern, key, value)
            return pattern

        pattern = RecurringPattern(
            user_id=user_id,
            keyword=candidate.keyword,
            source=RecurrenceSource.AUTO,
            **values,
        )
        self.db.add(pattern)
        # Flush so the new id can be attached to the transactions.
        await self.db.flush()
        return pattern

    async def list_patterns(self, user_id: UUID) -> list[RecurringPatternRead]:
        patterns = await self.pattern_repo.get_all_by_user(user_id)
        return await self._with_statistics(user_id, patterns)

    async def create_pattern(self, user_id: UUID, data: RecurringPatternCreate) -> RecurringPatternRead:
        pattern = await self.pattern_repo.create(
            RecurringPattern(
                user_id=user_id,
                label=data.label,
                keyword=normalize(data.keyword),
                amount=data.amount,
                frequency=data.frequency,
                source=RecurrenceSource.MANUAL,
                is_active=True,
            )
        )
        return (await self._with_statistics(user_id, [pattern]))[0]

    async def update_pattern(
        self, user_id: UUID, pattern_id: UUID, data: RecurringPatternUpdate
    ) -> RecurringPatternRead | None:
        """Apply the fields set on ``data``.

        Returns:
            The updated pattern, or None if it isn't the user's
        """
        if await self.pattern_repo.get_by_user(user_id, pattern_id) is None:
            return None
        # Only the next occurrence date can be cleared.
        updates = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "next_occurrence_date"
        }
        pattern = await self.pattern_repo.update(pattern_id, updates)
        return (await self._with_statistics(user_id, [pattern]))[0]

    async def delete_pattern(self, user_id: UUID, pattern_id: UUID) -> bool:
        """Delete a pattern; its transactions stay, unattached."""
        if await self.pattern_repo.get_by_user(user_id, pattern_id) is None:
            return False
        await self.transaction_repo.detach_recurring_pattern(pattern_id)
        return await self.pattern_repo.delete(pattern_id)

    async def set_transaction_pattern(
        self, user_id: UUID, transaction_id: UUID, pattern_id: UUID | None
    ) -> ImportedTransaction | None:
        """Attach a transaction to one of the user's patterns by hand, or detach it.

        Returns:
            The updated transaction, or None if the transaction or the
            pattern isn't the user's
        """
        tx = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if tx is None:
            return None
        if pattern_id is not None and await self.pattern_repo.get_by_user(user_id, pattern_id) is None:
            return None
        tx.recurring_pattern_id = pattern_id
        await self.db.commit()
        await self.db.refresh(tx)
        return tx

    async def _with_statistics(
        self, user_id: UUID, patterns: Sequence[RecurringPattern]
    ) -> list[RecurringPatternRead]:
        if not patterns:
            return []

        transactions = await self.transaction_repo.get_by_recurring_pattern(
            user_id, [p.id for p in patterns]
        )
        counts: dict[UUID, int] = defaultdict(int)
        latest: dict[UUID, ImportedTransaction] = {}
        # Newest first, so the first transaction seen per pattern is the latest.
        for tx in transactions:
            counts[tx.recurring_pattern_id] += 1
            latest.setdefault(tx.recurring_pattern_id, tx)

        results = []
        for pattern in patterns:
            last_tx = latest.get(pattern.id)
            peer_label = None
            if last_tx is not None and last_tx.transfer_peer_id is not None:
                peer = await self.transaction_repo.get_by_id(last_tx.transfer_peer_id)
                peer_label = peer.account.label if peer is not None else None
            results.append(
                RecurringPatternRead.model_validate(pattern).model_copy(
                    update={
                        "transaction_count": counts[pattern.id],
                        "last_transaction_date": last_tx.accounting_date if last_tx else None,
                        "transfer_peer_account_label": peer_label,
                    }
                )
            )
        return results
