"""Rule-based categorization service.

Loads a user's rules (system first, then their own in creation order) through
a short-lived process-wide cache and applies them to imported transactions.
"""

import logging
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from kasa.categorization.cache import RuleCache
from kasa.categorization.rules import CategorizationResult, RuleSnapshot, match_rules
from kasa.config import settings
from kasa.core.exceptions import InvalidCategoryError
from kasa.models.transaction import CategorySource, ImportedTransaction
from kasa.repositories.category import CategoryRepository, CategoryRuleRepository
from kasa.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

# Shared by every request in the process. Concurrent readers may see a rule list
# up to one TTL old; writers invalidate their own entry immediately.
rule_cache: RuleCache[list[RuleSnapshot]] = RuleCache(ttl_seconds=settings.rule_cache_ttl_seconds)

# Provenances the rule engine never overwrites.
PROTECTED_SOURCES = {CategorySource.MANUAL, CategorySource.AI}


def invalidate_rule_cache(user_id: UUID, cache: RuleCache | None = None) -> None:
    (cache if cache is not None else rule_cache).invalidate(user_id)


class CategorizationService:
    """Applies keyword rules to transactions."""

    def __init__(self, db: AsyncSession, cache: RuleCache | None = None):
        """Initialize the service.

        Args:
            db: Database session
            cache: Rule cache (defaults to the process-wide cache)
        """
        self.db = db
        self.cache = cache if cache is not None else rule_cache
        self.rule_repo = CategoryRuleRepository(db)
        self.category_repo = CategoryRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def load_rules(self, user_id: UUID) -> list[RuleSnapshot]:
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached
        rules = [
            RuleSnapshot.from_rule(rule)
            for rule in await self.rule_repo.get_ordered_for_user(user_id)
        ]
        self.cache.set(user_id, rules)
        return rules

    async def categorize_label(
        self, user_id: UUID, label: str, amount: Decimal | None = None
    ) -> CategorizationResult | None:
        """Match a single label against the user's rules without writing anything."""
        rules = await self.load_rules(user_id)
        return match_rules(label, rules, amount)

    async def bulk_categorize(
        self, user_id: UUID, transactions: Iterable[ImportedTransaction]
    ) -> int:
        """Categorize transactions with the user's rules.

        Transactions categorized manually or by the AI pass are left alone.

        Returns:
            Number of transactions updated
        """
        rules = await self.load_rules(user_id)
        count = 0

        for tx in transactions:
            if tx.category_source in PROTECTED_SOURCES:
                continue

            result = match_rules(tx.label, rules, tx.amount)
            if result is None:
                continue

            tx.category_id = result.category_id
            tx.category_source = CategorySource.AUTO
            tx.category_rule_id = result.rule_id
            count += 1

        if count:
            await self.db.commit()

        logger.info(
            "Rule categorization complete",
            extra={"user_id": user_id, "categorized": count},
        )
        return count

    async def categorize_user_transactions(self, user_id: UUID) -> int:
        """Run the rule pass over every transaction of a user."""
        transactions = await self.transaction_repo.get_all_by_user(user_id)
        return await self.bulk_categorize(user_id, transactions)

    async def set_manual_category(
        self, user_id: UUID, transaction_id: UUID, category_id: UUID | None
    ) -> ImportedTransaction | None:
        """Set (or clear) a category by hand.

        A manual category is never overwritten by rules or the AI pass. Clearing
        it makes the transaction eligible for both again.

        Returns:
            The updated transaction, or None if it isn't the user's

        Raises:
            InvalidCategoryError: If the category isn't visible to the user
        """
        tx = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if tx is None:
            return None

        if category_id is not None:
            category = await self.category_repo.get_visible_by_id(user_id, category_id)
            if category is None:
                raise InvalidCategoryError({"category_id": str(category_id)})

        tx.category_id = category_id
        tx.category_source = CategorySource.NONE if category_id is None else CategorySource.MANUAL
        tx.category_rule_id = None
        await self.db.commit()
        await self.db.refresh(tx)
        return tx
