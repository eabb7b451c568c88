"""Integration tests for recurring pattern detection and management."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select

from kasa.models import RecurringPattern
from kasa.models.recurring_pattern import RecurrenceFrequency, RecurrenceSource
from kasa.services.recurring_patterns import (
    RecurringPatternCreate,
    RecurringPatternService,
    RecurringPatternUpdate,
)

TODAY = date(2025, 4, 1)


async def monthly_netflix(make_transaction, **fields):
    return [
        await make_transaction("PRLV NETFLIX", debit="15.99", accounting_date=day, **fields)
        for day in (date(2025, 1, 5), date(2025, 2, 5), date(2025, 3, 5))
    ]


async def all_patterns(db_session):
    result = await db_session.execute(select(RecurringPattern))
    return list(result.scalars().all())


async def test_detection_creates_pattern_and_attaches_transactions(
    db_session, test_user, make_transaction
):
    netflix = await monthly_netflix(make_transaction)
    one_off = await make_transaction("CB FNAC", debit="199.00")

    detected = await RecurringPatternService(db_session).detect_recurring_patterns(
        test_user.id, today=TODAY
    )

    assert detected == 1
    [pattern] = await all_patterns(db_session)
    assert pattern.keyword == "prlv netflix"
    assert pattern.label == "PRLV NETFLIX"
    assert pattern.frequency == RecurrenceFrequency.MONTHLY
    assert pattern.source == RecurrenceSource.AUTO
    assert pattern.amount == Decimal("15.99")
    assert pattern.is_active is True
    assert pattern.next_occurrence_date == date(2025, 4, 4)
    assert all(tx.recurring_pattern_id == pattern.id for tx in netflix)
    assert one_off.recurring_pattern_id is None


async def test_detection_ignores_credits(db_session, test_user, make_transaction):
    for day in (date(2025, 1, 28), date(2025, 2, 28), date(2025, 3, 28)):
        await make_transaction("VIR SALAIRE", credit="2400.00", accounting_date=day)

    service = RecurringPatternService(db_session)

    assert await service.detect_recurring_patterns(test_user.id, today=TODAY) == 0
    assert await all_patterns(db_session) == []


async def test_rerun_updates_existing_auto_pattern(db_session, test_user, make_transaction):
    await monthly_netflix(make_transaction)
    service = RecurringPatternService(db_session)
    await service.detect_recurring_patterns(test_user.id, today=TODAY)

    await make_transaction("PRLV NETFLIX", debit="15.99", accounting_date=date(2025, 4, 5))
    await service.detect_recurring_patterns(test_user.id, today=date(2025, 4, 6))

    [pattern] = await all_patterns(db_session)
    assert pattern.next_occurrence_date == date(2025, 5, 5)


async def test_stale_pattern_is_inactive(db_session, test_user, make_transaction):
    await monthly_netflix(make_transaction)

    await RecurringPatternService(db_session).detect_recurring_patterns(
        test_user.id, today=date(2025, 6, 1)
    )

    [pattern] = await all_patterns(db_session)
    assert pattern.is_active is False


async def test_vanished_auto_patterns_are_deactivated_manual_ones_kept(
    db_session, test_user, make_transaction
):
    await monthly_netflix(make_transaction)
    service = RecurringPatternService(db_session)
    gone = RecurringPattern(
        user_id=test_user.id,
        label="Ancien abonnement",
        keyword="prlv canal",
        frequency=RecurrenceFrequency.MONTHLY,
        source=RecurrenceSource.AUTO,
        is_active=True,
    )
    manual = RecurringPattern(
        user_id=test_user.id,
        label="Loyer",
        keyword="loyer",
        frequency=RecurrenceFrequency.MONTHLY,
        source=RecurrenceSource.MANUAL,
        is_active=True,
    )
    db_session.add_all([gone, manual])
    await db_session.commit()

    await service.detect_recurring_patterns(test_user.id, today=TODAY)

    await db_session.refresh(gone)
    await db_session.refresh(manual)
    assert gone.is_active is False
    assert manual.is_active is True


async def test_nothing_detected_leaves_auto_patterns_alone(db_session, test_user):
    pattern = RecurringPattern(
        user_id=test_user.id,
        label="Ancien abonnement",
        keyword="prlv canal",
        frequency=RecurrenceFrequency.MONTHLY,
        source=RecurrenceSource.AUTO,
        is_active=True,
    )
    db_session.add(pattern)
    await db_session.commit()

    await RecurringPatternService(db_session).detect_recurring_patterns(test_user.id, today=TODAY)

    await db_session.refresh(pattern)
    assert pattern.is_active is True


async def test_list_patterns_with_statistics(
    db_session, test_user, checking_account, savings_account, make_transaction
):
    netflix = await monthly_netflix(make_transaction)
    service = RecurringPatternService(db_session)
    await service.detect_recurring_patterns(test_user.id, today=TODAY)
    await service.create_pattern(
        test_user.id,
        RecurringPatternCreate(label="Assurance", keyword="AXA Assurance", frequency="ANNUAL"),
    )
    credit = await make_transaction("VIR NETFLIX", credit="15.99", account=savings_account)
    netflix[-1].transfer_peer_id = credit.id
    await db_session.commit()

    patterns = await service.list_patterns(test_user.id)

    assert [p.keyword for p in patterns] == ["prlv netflix", "axa assurance"]
    detected, manual = patterns
    assert detected.transaction_count == 3
    assert detected.last_transaction_date == date(2025, 3, 5)
    assert detected.transfer_peer_account_label == "Livret A"
    assert manual.source == RecurrenceSource.MANUAL
    assert manual.transaction_count == 0
    assert manual.last_transaction_date is None
    assert manual.next_occurrence_date is None


async def test_update_and_delete_are_user_scoped(
    db_session, test_user, another_user, make_transaction
):
    netflix = await monthly_netflix(make_transaction)
    service = RecurringPatternService(db_session)
    await service.detect_recurring_patterns(test_user.id, today=TODAY)
    [pattern] = await all_patterns(db_session)

    update = RecurringPatternUpdate(label="Netflix", is_active=False, next_occurrence_date=None)
    assert await service.update_pattern(another_user.id, pattern.id, update) is None
    updated = await service.update_pattern(test_user.id, pattern.id, update)
    assert updated.label == "Netflix"
    assert updated.is_active is False
    assert updated.next_occurrence_date is None
    assert updated.frequency == RecurrenceFrequency.MONTHLY

    assert await service.delete_pattern(another_user.id, pattern.id) is False
    assert await service.delete_pattern(test_user.id, pattern.id) is True
    assert await all_patterns(db_session) == []
    for tx in netflix:
        await db_session.refresh(tx)
        assert tx.recurring_pattern_id is None


async def test_set_transaction_pattern(db_session, test_user, another_user, make_transaction):
    tx = await make_transaction("PRLV SPOTIFY", debit="10.99")
    service = RecurringPatternService(db_session)
    pattern = await service.create_pattern(
        test_user.id,
        RecurringPatternCreate(label="Spotify", keyword="spotify", frequency="MONTHLY", amount="10.99"),
    )

    assert await service.set_transaction_pattern(test_user.id, tx.id, uuid4()) is None
    assert await service.set_transaction_pattern(another_user.id, tx.id, pattern.id) is None

    updated = await service.set_transaction_pattern(test_user.id, tx.id, pattern.id)
    assert updated.recurring_pattern_id == pattern.id

    cleared = await service.set_transaction_pattern(test_user.id, tx.id, None)
    assert cleared.recurring_pattern_id is None
