"""Deterministic rule matching.

Ordering matters: the caller passes rules system-first, then by creation time,
and the first match wins. All rules are tried with an exact substring test
before any rule is tried fuzzily.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Protocol, Sequence
from uuid import UUID

from pydantic import BaseModel

from kasa.matching.fuzzy import fuzzy_keyword_match
from kasa.matching.normalize import normalize


class CategoryRuleLike(Protocol):
    id: UUID
    category_id: UUID
    keyword: str
    amount: Decimal | None
    is_system: bool


class CategorizationResult(BaseModel):
    """Which rule categorized a label, and how."""

    category_id: UUID
    rule_id: UUID
    is_system: bool
    method: Literal["exact", "fuzzy"]


def amount_allows(rule_amount: Decimal | None, amount: Decimal | None) -> bool:
    """A rule amount, when set, must equal the transaction amount exactly."""
    if rule_amount is None:
        return True
    return amount is not None and Decimal(rule_amount) == Decimal(amount)


def match_rules(
    label: str,
    rules: Sequence[CategoryRuleLike],
    amount: Decimal | None = None,
) -> CategorizationResult | None:
    """Find the first category rule matching a transaction label.

    Args:
        label: Raw transaction label
        rules: Category rules, already ordered system-first then by creation
        amount: Transaction amount, checked against rules carrying an amount

    Returns:
        CategorizationResult for the winning rule, or None.
    """
    normalized_label = normalize(label)
    if not normalized_label:
        return None

    candidates = [
        (rule, normalize(rule.keyword))
        for rule in rules
        if amount_allows(rule.amount, amount)
    ]

    for rule, keyword in candidates:
        if keyword and keyword in normalized_label:
            return _result(rule, "exact")

    for rule, keyword in candidates:
        if fuzzy_keyword_match(normalized_label, keyword):
            return _result(rule, "fuzzy")

    return None


def _result(rule: CategoryRuleLike, method: Literal["exact", "fuzzy"]) -> CategorizationResult:
    return CategorizationResult(
        category_id=rule.category_id,
        rule_id=rule.id,
        is_system=rule.is_system,
        method=method,
    )


@dataclass(frozen=True)
class RuleSnapshot:
    """Detached copy of a category rule, safe to share across sessions."""

    id: UUID
    category_id: UUID
    keyword: str
    amount: Decimal | None
    is_system: bool

    @classmethod
    def from_rule(cls, rule: CategoryRuleLike) -> "RuleSnapshot":
        return cls(
            id=rule.id,
            category_id=rule.category_id,
            keyword=rule.keyword,
            amount=rule.amount,
            is_system=rule.is_system,
        )
