"""Friendly labels for transfers ("Épargne", "Loyer coloc", ...).

Rules are matched against the normalized label plus detail text, system rules
first. A label set by hand carries no rule id.
"""

import logging
from decimal import Decimal
from typing import Protocol, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.categorization.rules import amount_allows
from kasa.core.exceptions import ForbiddenError
from kasa.matching.fuzzy import fuzzy_keyword_match
from kasa.matching.normalize import normalize
from kasa.models.transaction import ImportedTransaction
from kasa.models.transfer_label_rule import TransferLabelRule
from kasa.repositories.transaction import TransactionRepository
from kasa.repositories.transfer_label_rule import TransferLabelRuleRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"keyword", "label", "amount"}


class LabeledTransactionLike(Protocol):
    label: str
    detail: str | None
    debit: Decimal | None
    credit: Decimal | None


class TransferLabelRuleWithCount(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    keyword: str
    label: str
    amount: Decimal | None
    is_system: bool
    transaction_count: int = 0


def combined_text(tx: LabeledTransactionLike) -> str:
    return f"{normalize(tx.label)} {normalize(tx.detail)}".strip()


def find_matching_rule(
    tx: LabeledTransactionLike, rules: Sequence[TransferLabelRule]
) -> TransferLabelRule | None:
    """First rule whose keyword is in, or fuzzily matches, the transaction text."""
    text = combined_text(tx)
    amount = tx.debit if tx.debit is not None else tx.credit

    for rule in rules:
        if not amount_allows(rule.amount, amount):
            continue
        keyword = normalize(rule.keyword)
        if (keyword and keyword in text) or fuzzy_keyword_match(text, keyword):
            return rule
    return None


class TransferLabelService:
    """Manages transfer label rules and applies them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rule_repo = TransferLabelRuleRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def list_rules(self, user_id: UUID) -> list[TransferLabelRuleWithCount]:
        rules = await self.rule_repo.get_ordered_for_user(user_id)
        counts = await self.transaction_repo.count_by_transfer_label_rule(user_id)
        return [
            TransferLabelRuleWithCount.model_validate(rule).model_copy(
                update={"transaction_count": counts.get(rule.id, 0)}
            )
            for rule in rules
        ]

    async def create_rule(
        self, user_id: UUID, keyword: str, label: str, amount: Decimal | None = None
    ) -> TransferLabelRule:
        return await self.rule_repo.create(
            TransferLabelRule(
                user_id=user_id,
                keyword=keyword.strip(),
                label=label.strip(),
                amount=amount,
                is_system=False,
            )
        )

    async def update_rule(
        self, user_id: UUID, rule_id: UUID, updates: dict
    ) -> TransferLabelRule | None:
        """Update keyword, label or amount of a user rule.

        Returns:
            The updated rule, or None if it doesn't exist

        Raises:
            ForbiddenError: If the rule is a system rule or another user's
        """
        rule = await self._get_owned(user_id, rule_id)
        if rule is None:
            return None
        data = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        return await self.rule_repo.update(rule_id, data)

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> bool:
        rule = await self._get_owned(user_id, rule_id)
        if rule is None:
            return False
        return await self.rule_repo.delete(rule_id)

    async def _get_owned(self, user_id: UUID, rule_id: UUID) -> TransferLabelRule | None:
        rule = await self.rule_repo.get_by_id(rule_id)
        if rule is None:
            return None
        if rule.is_system or rule.user_id != user_id:
            raise ForbiddenError({"rule_id": str(rule_id)})
        return rule

    async def apply_transfer_label_rules(
        self, user_id: UUID, transaction_ids: list[UUID] | None = None
    ) -> int:
        """Label every unlabeled transaction (optionally only ``transaction_ids``).

        Returns:
            Number of transactions labeled
        """
        rules = await self.rule_repo.get_ordered_for_user(user_id)
        if not rules:
            return 0

        transactions = await self.transaction_repo.get_without_transfer_label(
            user_id, transaction_ids
        )

        count = 0
        for tx in transactions:
            rule = find_matching_rule(tx, rules)
            if rule is None:
                continue
            tx.transfer_label = rule.label
            tx.transfer_label_rule_id = rule.id
            count += 1

        if count:
            await self.db.commit()

        logger.info("Transfer labels applied", extra={"user_id": user_id, "labeled": count})
        return count

    async def set_transfer_label(
        self, user_id: UUID, transaction_id: UUID, label: str | None
    ) -> ImportedTransaction | None:
        """Set or clear a transfer label by hand.

        Returns:
            The updated transaction, or None if it isn't the user's
        """
        tx = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if tx is None:
            return None
        tx.transfer_label = label.strip() if label and label.strip() else None
        tx.transfer_label_rule_id = None
        await self.db.commit()
        await self.db.refresh(tx)
        return tx
