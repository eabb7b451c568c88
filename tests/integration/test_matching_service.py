"""Integration test for the full post-import matching run."""

import json
from datetime import date

from kasa.config import Settings
from kasa.core.exceptions import ProviderError
from kasa.models.transaction import CategorySource, TransactionStatus
from kasa.services.matching import MatchingService


class FailingProvider:
    name = "failing"

    async def generate(self, prompt: str) -> str:
        raise ProviderError("provider down")


class OneShotProvider:
    name = "one-shot"

    def __init__(self, response: str):
        self.response = response

    async def generate(self, prompt: str) -> str:
        return self.response


async def test_run_chains_every_matcher(
    db_session,
    test_user,
    checking_account,
    savings_account,
    groceries,
    make_rule,
    make_transaction,
    make_expense,
):
    await make_rule("carrefour", groceries)
    groceries_tx = await make_transaction("CB CARREFOUR MARKET", debit="54.20")
    debit = await make_transaction(
        "VIR VERS EPARGNE", debit="500.00", accounting_date=date(2025, 3, 1), account=checking_account
    )
    credit = await make_transaction(
        "VIR RECU COMPTE", credit="500.00", accounting_date=date(2025, 3, 2), account=savings_account
    )
    rent = await make_transaction(
        "VIR SEPA LOYER MARS", debit="800.00", accounting_date=date(2025, 1, 15)
    )
    await make_expense("Loyer mars", "800.00", date(2025, 1, 15))

    summary = await MatchingService(
        db_session, settings=Settings(ai_categorization_enabled=False)
    ).run(test_user.id)

    assert summary.rule_categorized == 1
    assert summary.ai is None
    assert summary.transfer_pairs == 1
    assert summary.auto_reconciled == 1
    assert summary.recurring_patterns == 0
    assert groceries_tx.category_source == CategorySource.AUTO
    assert debit.transfer_peer_id == credit.id
    assert rent.status == TransactionStatus.RECONCILED


async def test_ai_step_runs_when_enabled(db_session, test_user, groceries, make_transaction):
    tx = await make_transaction("CB BIOCOOP", debit="12.00")
    response = json.dumps(
        {"results": [{"index": 0, "categoryId": str(groceries.id), "confidence": 0.95, "keyword": "biocoop"}]}
    )
    settings = Settings(ai_categorization_enabled=True)

    summary = await MatchingService(
        db_session, provider=OneShotProvider(response), settings=settings
    ).run(test_user.id)

    assert summary.ai.categorized == 1
    assert summary.ai.rules_created == 1
    assert tx.category_source == CategorySource.AI


async def test_ai_failure_does_not_stop_later_steps(
    db_session, test_user, make_transaction, make_expense
):
    rent = await make_transaction(
        "VIR SEPA LOYER MARS", debit="800.00", accounting_date=date(2025, 1, 15)
    )
    await make_expense("Loyer mars", "800.00", date(2025, 1, 15))

    summary = await MatchingService(
        db_session, provider=FailingProvider(), settings=Settings(ai_categorization_enabled=True)
    ).run(test_user.id)

    assert summary.ai.error == "provider down"
    assert summary.auto_reconciled == 1
    assert rent.status == TransactionStatus.RECONCILED


async def test_run_detects_recurring_debits(db_session, test_user, make_transaction):
    subscription = [
        await make_transaction("PRLV NETFLIX", debit="15.99", accounting_date=day)
        for day in (date(2025, 1, 5), date(2025, 2, 5), date(2025, 3, 5))
    ]

    summary = await MatchingService(
        db_session, settings=Settings(ai_categorization_enabled=False)
    ).run(test_user.id)

    assert summary.recurring_patterns == 1
    assert subscription[0].recurring_pattern_id is not None
    assert len({tx.recurring_pattern_id for tx in subscription}) == 1
