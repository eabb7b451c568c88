"""Fuzzy similarity primitives.

Both scores live in [0, 1] and expect already-normalized input.
"""

from __future__ import annotations

FUZZY_THRESHOLD = 0.75
MIN_FUZZY_TOKEN_LENGTH = 3
MIN_TOKEN_SET_LENGTH = 2


def _bigrams(text: str) -> set[str]:
    return {text[i : i + 2] for i in range(len(text) - 1)}


def bigram_dice(a: str, b: str) -> float:
    """Sorensen-Dice coefficient over the character-bigram sets of a and b."""
    bigrams_a = _bigrams(a)
    bigrams_b = _bigrams(b)
    if not bigrams_a or not bigrams_b:
        return 0.0
    return 2 * len(bigrams_a & bigrams_b) / (len(bigrams_a) + len(bigrams_b))


def token_set_ratio(a: str, b: str) -> float:
    """Share of the smaller token set found in the other one."""
    tokens_a = {t for t in a.split(" ") if len(t) >= MIN_TOKEN_SET_LENGTH}
    tokens_b = {t for t in b.split(" ") if len(t) >= MIN_TOKEN_SET_LENGTH}
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))


def _significant_tokens(text: str) -> list[str]:
    return [t for t in text.split(" ") if len(t) >= MIN_FUZZY_TOKEN_LENGTH]


def fuzzy_keyword_match(text: str, keyword: str, threshold: float = FUZZY_THRESHOLD) -> bool:
    """True when every keyword token has a close token in text.

    Tokens shorter than three characters are ignored on both sides. A keyword
    with no remaining token never matches.
    """
    keyword_tokens = _significant_tokens(keyword)
    if not keyword_tokens:
        return False
    text_tokens = _significant_tokens(text)
    return all(
        any(bigram_dice(kt, tt) >= threshold for tt in text_tokens)
        for kt in keyword_tokens
    )
