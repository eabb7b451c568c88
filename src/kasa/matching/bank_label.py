"""Bank label vs. user label similarity.

Banks prefix labels with boilerplate ("VIR SEPA", "PRLV SEPA", "CB ") that
users never type. The prefix is stripped from the bank side only, so
``match_bank_label(a, b)`` is not symmetric.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from .fuzzy import bigram_dice, token_set_ratio
from .normalize import normalize

BANK_PREFIXES: tuple[str, ...] = (
    "VIR SEPA RECU DE",
    "VIR SEPA",
    "VIR INST",
    "VIR TRESO",
    "PRLV SEPA",
    "PRLV EUROPEEN",
    "RETRAIT DAB",
    "RETRAIT CB",
    "AVOIR CB",
    "ANNUL VIR",
    "REMISE CB",
    "VIREMENT DE",
    "VIREMENT A",
    "VIREMENT RECU",
    "PAIEMENT PAR CARTE",
    "CB/",
    "CB ",
    "PRELEVEMENT SEPA",
    "ECHEANCE",
    "CHEQUE",
    "REM CHQ",
)

# Longest first so "VIR SEPA RECU DE" wins over "VIR SEPA".
_PREFIXES_BY_LENGTH = sorted(BANK_PREFIXES, key=len, reverse=True)

HIGH_THRESHOLD = 0.85
PLAUSIBLE_THRESHOLD = 0.60
WEAK_THRESHOLD = 0.40

Confidence = Literal["high", "plausible", "weak", "none"]
Method = Literal["token-set", "bigram-dice"]


class MatchResult(BaseModel):
    """Similarity between a bank label and a user label."""

    score: float
    confidence: Confidence
    method: Method


def strip_banking_prefix(bank_label: str) -> str:
    """Remove the longest known banking prefix, case-insensitively."""
    upper = bank_label.upper()
    for prefix in _PREFIXES_BY_LENGTH:
        if upper.startswith(prefix):
            return bank_label[len(prefix) :].strip()
    return bank_label


def confidence_for(score: float) -> Confidence:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= PLAUSIBLE_THRESHOLD:
        return "plausible"
    if score >= WEAK_THRESHOLD:
        return "weak"
    return "none"


def match_bank_label(bank_label: str | None, user_label: str | None) -> MatchResult:
    """Score how likely a raw bank label and a user label describe the same payment.

    Args:
        bank_label: Raw label from the bank statement (prefix-stripped)
        user_label: Label typed by the user

    Returns:
        MatchResult with the best of token-set ratio and bigram Dice, rounded
        to 3 decimals, and its confidence bucket.
    """
    if not (bank_label or "").strip() or not (user_label or "").strip():
        return MatchResult(score=0.0, confidence="none", method="token-set")

    bank_norm = normalize(strip_banking_prefix(bank_label))
    user_norm = normalize(user_label)

    ts_ratio = token_set_ratio(bank_norm, user_norm)
    dice = bigram_dice(bank_norm, user_norm)

    score = max(ts_ratio, dice)
    method: Method = "token-set" if ts_ratio >= dice else "bigram-dice"

    return MatchResult(
        score=round(score, 3),
        confidence=confidence_for(score),
        method=method,
    )
