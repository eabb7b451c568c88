"""Keyword rule suggestions mined from uncategorized labels."""

import re
from collections import Counter
from typing import Iterable
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kasa.matching.normalize import normalize
from kasa.repositories.category import CategoryRuleRepository
from kasa.repositories.transaction import TransactionRepository

STOP_WORDS = frozenset(
    {"par", "de", "du", "les", "des", "sur", "pour", "avec", "the", "and", "for"}
)
MIN_KEYWORD_LENGTH = 4
MIN_MATCH_COUNT = 3
MAX_SUGGESTIONS = 10

_NUMERIC = re.compile(r"^\d+$")


class RuleSuggestion(BaseModel):
    keyword: str
    match_count: int


def extract_keywords(label: str) -> list[str]:
    return [
        token
        for token in normalize(label).split(" ")
        if len(token) >= MIN_KEYWORD_LENGTH
        and not _NUMERIC.match(token)
        and token not in STOP_WORDS
    ]


def build_frequency_map(labels: Iterable[str]) -> Counter[str]:
    freq: Counter[str] = Counter()
    for label in labels:
        freq.update(extract_keywords(label))
    return freq


def rank_suggestions(
    labels: Iterable[str],
    existing_keywords: Iterable[str],
    min_count: int = MIN_MATCH_COUNT,
    limit: int = MAX_SUGGESTIONS,
) -> list[RuleSuggestion]:
    """Most frequent label tokens not already covered by a rule.

    Ties keep first-seen order.
    """
    covered = {normalize(keyword) for keyword in existing_keywords}
    freq = build_frequency_map(labels)
    ranked = sorted(
        ((kw, count) for kw, count in freq.items() if count >= min_count and kw not in covered),
        key=lambda item: item[1],
        reverse=True,
    )
    return [RuleSuggestion(keyword=kw, match_count=count) for kw, count in ranked[:limit]]


class RuleSuggestionService:
    """Read-only suggestion of new keyword rules."""

    def __init__(self, db: AsyncSession):
        self.transaction_repo = TransactionRepository(db)
        self.rule_repo = CategoryRuleRepository(db)

    async def suggest_rules(self, user_id: UUID) -> list[RuleSuggestion]:
        labels = await self.transaction_repo.get_uncategorized_labels(user_id)
        rules = await self.rule_repo.get_ordered_for_user(user_id)
        return rank_suggestions(labels, [rule.keyword for rule in rules])
