"""Unit tests for greedy transfer pairing."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from kasa.services.transfers import find_matching_credit, pair_transfers

ACCOUNT_A = uuid4()
ACCOUNT_B = uuid4()


def make_tx(account, day, debit=None, credit=None):
    return SimpleNamespace(
        id=uuid4(),
        account_id=account,
        accounting_date=day,
        debit=Decimal(debit) if debit is not None else None,
        credit=Decimal(credit) if credit is not None else None,
    )


def test_pairs_debit_and_credit_across_accounts() -> None:
    debit = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="500.00")
    credit = make_tx(ACCOUNT_B, date(2025, 3, 2), credit="500.00")
    assert pair_transfers([debit, credit]) == [(debit.id, credit.id)]


def test_never_pairs_on_same_account() -> None:
    debit = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="500.00")
    credit = make_tx(ACCOUNT_A, date(2025, 3, 1), credit="500.00")
    assert pair_transfers([debit, credit]) == []


def test_amounts_must_match_exactly() -> None:
    debit = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="500.00")
    credit = make_tx(ACCOUNT_B, date(2025, 3, 1), credit="500.01")
    assert pair_transfers([debit, credit]) == []


def test_window_is_three_days() -> None:
    debit = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="500.00")
    late = make_tx(ACCOUNT_B, date(2025, 3, 5), credit="500.00")
    on_time = make_tx(ACCOUNT_B, date(2025, 3, 4), credit="500.00")
    assert find_matching_credit(debit, [late], set()) is None
    assert find_matching_credit(debit, [late, on_time], set()) == on_time.id


def test_credit_is_used_once() -> None:
    first = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="100.00")
    second = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="100.00")
    credit = make_tx(ACCOUNT_B, date(2025, 3, 1), credit="100.00")

    pairs = pair_transfers([first, second, credit])

    assert pairs == [(first.id, credit.id)]


def test_greedy_pairing_takes_first_eligible_credit() -> None:
    debit_1 = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="50.00")
    debit_2 = make_tx(ACCOUNT_A, date(2025, 3, 1), debit="50.00")
    credit_1 = make_tx(ACCOUNT_B, date(2025, 3, 1), credit="50.00")
    credit_2 = make_tx(ACCOUNT_B, date(2025, 3, 1), credit="50.00")

    pairs = pair_transfers([debit_1, credit_1, debit_2, credit_2])

    assert pairs == [(debit_1.id, credit_1.id), (debit_2.id, credit_2.id)]
