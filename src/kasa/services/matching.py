"""Post-import matching run.

Chains every matcher over a user's freshly imported transactions in the order
each one depends on the previous: rule categorization, optional AI pass,
transfer pairing, transfer labels, reconciliation against manual expenses,
then recurring payment detection.
"""

import logging
import time
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.ai.providers import GenerationProvider
from kasa.config import Settings, settings as default_settings
from kasa.services.ai_categorization import AiCategorizationService, AiCategorizeBatchResult
from kasa.services.categorization import CategorizationService
from kasa.services.reconciliation import ReconciliationService
from kasa.services.recurring_patterns import RecurringPatternService
from kasa.services.transfer_labels import TransferLabelService
from kasa.services.transfers import TransferDetectionService

logger = logging.getLogger(__name__)


class MatchingSummary(BaseModel):
    rule_categorized: int
    ai: AiCategorizeBatchResult | None = None
    transfer_pairs: int
    transfer_labeled: int
    auto_reconciled: int
    awaiting_review: list[UUID]
    recurring_patterns: int
    processing_time_ms: int


class MatchingService:
    """Runs all matchers for one user, sequentially."""

    def __init__(
        self,
        db: AsyncSession,
        provider: GenerationProvider | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.provider = provider
        self.categorization = CategorizationService(db)
        self.transfers = TransferDetectionService(db)
        self.transfer_labels = TransferLabelService(db)
        self.reconciliation = ReconciliationService(db)
        self.recurring_patterns = RecurringPatternService(db)

    async def run(self, user_id: UUID) -> MatchingSummary:
        """Match everything for a user.

        Workflow:
        1. Categorize with keyword rules
        2. Categorize the leftovers with AI (when enabled)
        3. Pair internal transfers
        4. Apply transfer label rules
        5. Reconcile against manual expenses
        6. Detect recurring payments

        An AI provider failure is reported in the summary and does not stop
        the later steps.

        Raises:
            ProviderConfigurationError: If AI is enabled but no provider is configured
        """
        start_time = time.time()

        rule_categorized = await self.categorization.categorize_user_transactions(user_id)

        ai_result = None
        if self.settings.ai_categorization_enabled:
            ai_service = AiCategorizationService(
                self.db, provider=self.provider, settings=self.settings
            )
            ai_result = await ai_service.categorize_user_transactions(user_id)
            if ai_result.error:
                logger.warning(
                    "AI pass ended early",
                    extra={"user_id": user_id, "error_message": ai_result.error},
                )

        pairs = await self.transfers.detect_transfer_pairs(user_id)
        labeled = await self.transfer_labels.apply_transfer_label_rules(user_id)
        reconciliation = await self.reconciliation.run_reconciliation(user_id)
        recurring = await self.recurring_patterns.detect_recurring_patterns(user_id)

        summary = MatchingSummary(
            rule_categorized=rule_categorized,
            ai=ai_result,
            transfer_pairs=len(pairs),
            transfer_labeled=labeled,
            auto_reconciled=len(reconciliation.auto_reconciled),
            awaiting_review=reconciliation.awaiting_review,
            recurring_patterns=recurring,
            processing_time_ms=int((time.time() - start_time) * 1000),
        )
        logger.info(
            "Matching run complete",
            extra={"user_id": user_id, "processing_time_ms": summary.processing_time_ms},
        )
        return summary
