"""Text matching primitives tuned for French bank labels."""

from .bank_label import MatchResult, match_bank_label, strip_banking_prefix
from .fuzzy import bigram_dice, fuzzy_keyword_match, token_set_ratio
from .normalize import normalize

__all__ = [
    "MatchResult",
    "bigram_dice",
    "fuzzy_keyword_match",
    "match_bank_label",
    "normalize",
    "strip_banking_prefix",
    "token_set_ratio",
]
