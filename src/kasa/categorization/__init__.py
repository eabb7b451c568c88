"""Keyword-rule categorization of imported transactions.

Rules are matched locally (no network calls) against normalized labels. The
AI pass in ``kasa.services.ai_categorization`` only sees what rules missed.
"""

from .cache import RuleCache
from .rules import CategorizationResult, RuleSnapshot, match_rules

__all__ = ["CategorizationResult", "RuleCache", "RuleSnapshot", "match_rules"]
