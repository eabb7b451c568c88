"""AI-assisted categorization of transactions the rules couldn't place.

Transactions are sent to a generation provider in fixed-size batches, one
batch at a time. Confident answers are also promoted to permanent user rules
so the next import is handled by the rule engine instead.
"""

import logging
from typing import Sequence
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.ai.parsing import AiResultItem, parse_ai_response
from kasa.ai.prompt import build_prompt
from kasa.ai.providers import GenerationProvider, create_fallback_provider
from kasa.categorization.cache import RuleCache
from kasa.config import Settings, settings as default_settings
from kasa.core.exceptions import AiDisabledError, ProviderError
from kasa.models.category import Category
from kasa.models.category_rule import CategoryRule
from kasa.models.transaction import CategorySource, ImportedTransaction
from kasa.repositories.category import CategoryRepository, CategoryRuleRepository
from kasa.repositories.transaction import TransactionRepository
from kasa.services.categorization import invalidate_rule_cache

logger = logging.getLogger(__name__)

AUTO_LEARN_MIN_KEYWORD_LENGTH = 3


class AiCategorizeBatchResult(BaseModel):
    """Counters for one AI pass.

    ``error`` is set when a provider failure stopped the pass early; the
    counters then cover only the batches completed before it.
    """

    categorized: int = 0
    rules_created: int = 0
    error: str | None = None


class AiCategorizationService:
    """Runs uncategorized transactions through a generation provider."""

    def __init__(
        self,
        db: AsyncSession,
        provider: GenerationProvider | None = None,
        cache: RuleCache | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the service.

        Args:
            db: Database session
            provider: Generation provider (defaults to the configured fallback chain)
            cache: Rule cache to invalidate when rules are learned
            settings: Settings override

        Raises:
            ProviderConfigurationError: If no provider is given and none is configured
        """
        self.db = db
        self.settings = settings or default_settings
        self.provider = provider if provider is not None else create_fallback_provider(self.settings)
        self.cache = cache
        self.batch_size = self.settings.ai_batch_size
        self.auto_learn_confidence = self.settings.ai_auto_learn_confidence
        self.category_repo = CategoryRepository(db)
        self.rule_repo = CategoryRuleRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def categorize_user_transactions(self, user_id: UUID) -> AiCategorizeBatchResult:
        """Run the AI pass over all of a user's uncategorized transactions.

        Raises:
            AiDisabledError: If AI categorization is turned off
        """
        if not self.settings.ai_categorization_enabled:
            raise AiDisabledError({"user_id": str(user_id)})
        transactions = await self.transaction_repo.get_uncategorized(user_id)
        return await self.ai_categorize_batch(user_id, transactions)

    async def ai_categorize_batch(
        self, user_id: UUID, transactions: Sequence[ImportedTransaction]
    ) -> AiCategorizeBatchResult:
        """Categorize transactions that have no category yet.

        Batches run sequentially and each is committed on its own. A provider
        failure stops the remaining batches; work from earlier batches stays.
        """
        pending = [tx for tx in transactions if tx.category_source == CategorySource.NONE]
        logger.info(
            f"AI categorization: {len(pending)}/{len(transactions)} transactions need a category",
            extra={"user_id": user_id},
        )
        result = AiCategorizeBatchResult()
        if not pending:
            return result

        categories = await self.category_repo.get_visible(user_id)
        category_map = {str(c.id): c for c in categories}

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start : start + self.batch_size]
            prompt = build_prompt(categories, batch)

            # Any provider failure ends the pass with partial counts.
            try:
                raw = await self.provider.generate(prompt)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.error(
                    f"AI provider failed, stopping after {result.categorized} categorizations: {message}",
                    extra={"user_id": user_id, "batch_start": start},
                    exc_info=not isinstance(e, ProviderError),
                )
                result.error = message
                return result

            categorized, rules_created = await self._apply_batch(
                user_id, batch, raw, category_map
            )
            result.categorized += categorized
            result.rules_created += rules_created

        logger.info(
            "AI categorization complete",
            extra={
                "user_id": user_id,
                "categorized": result.categorized,
                "rules_created": result.rules_created,
            },
        )
        return result

    async def _apply_batch(
        self,
        user_id: UUID,
        batch: Sequence[ImportedTransaction],
        raw: str,
        category_map: dict[str, Category],
    ) -> tuple[int, int]:
        parsed = parse_ai_response(raw)
        if not parsed.ok:
            logger.warning(
                f"Unusable AI response for batch of {len(batch)}: {parsed.reason}",
                extra={"user_id": user_id},
            )
            return 0, 0

        categorized = 0
        rules_created = 0

        for item in parsed.results:
            if item.index >= len(batch) or item.category_id not in category_map:
                continue

            tx = batch[item.index]
            category = category_map[item.category_id]
            tx.category_id = category.id
            tx.category_source = CategorySource.AI
            tx.category_rule_id = None
            categorized += 1

            if self._should_learn(item) and await self._learn_rule(user_id, item, category):
                rules_created += 1

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if rules_created:
            invalidate_rule_cache(user_id, self.cache)

        logger.info(
            f"Parsed {len(parsed.results)}/{len(batch)} AI results",
            extra={"user_id": user_id, "categorized": categorized, "rules_created": rules_created},
        )
        return categorized, rules_created

    def _should_learn(self, item: AiResultItem) -> bool:
        return (
            item.confidence >= self.auto_learn_confidence
            and len(item.keyword) >= AUTO_LEARN_MIN_KEYWORD_LENGTH
        )

    async def _learn_rule(self, user_id: UUID, item: AiResultItem, category: Category) -> bool:
        """Add a user rule for the keyword unless one already exists."""
        if await self.rule_repo.find_by_keyword(user_id, item.keyword) is not None:
            return False

        self.db.add(
            CategoryRule(
                user_id=user_id,
                keyword=item.keyword,
                category_id=category.id,
                is_system=False,
            )
        )
        # Flush so later results in the batch see the new keyword.
        await self.db.flush()
        logger.info(
            f"Learned rule '{item.keyword}' -> {category.name}",
            extra={"user_id": user_id},
        )
        return True
