"""Transaction categorization utilities.

This module provides deterministic, local categorization of transactions
based on their descriptions and user-managed pattern rules.
"""

from .resolver import effective_category
from .rules import (
    FALLBACK_CATEGORY,
    Rule,
    RuleError,
    RuleSet,
    categorize,
    compile_rules,
    preview_categorization,
)

__all__ = [
    "FALLBACK_CATEGORY",
    "Rule",
    "RuleError",
    "RuleSet",
    "categorize",
    "compile_rules",
    "effective_category",
    "preview_categorization",
]
