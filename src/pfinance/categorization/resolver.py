"""Effective category resolution for stored transactions.

A manual assignment always wins over rule evaluation; rules are only
consulted for transactions without a usable override.
"""

from typing import Mapping, Protocol

from pfinance.categorization.rules import RuleSet


class Categorizable(Protocol):
    description: str
    is_manual_override: bool
    manual_category_id: int | None


def manual_category(
    transaction: Categorizable, category_names: Mapping[int, str]
) -> str | None:
    """Return the manually assigned category name, if the override is usable."""
    if not transaction.is_manual_override or transaction.manual_category_id is None:
        return None
    return category_names.get(transaction.manual_category_id)


def effective_category(
    transaction: Categorizable,
    rule_set: RuleSet,
    category_names: Mapping[int, str],
) -> str:
    """Resolve the category a transaction should display.

    Args:
        transaction: Transaction-like object.
        rule_set: Compiled rules for automatic categorization.
        category_names: Map of active category id -> name.

    Returns:
        The manual category name when overridden, else the rule outcome.
    """
    manual = manual_category(transaction, category_names)
    if manual is not None:
        return manual
    return rule_set.categorize(transaction.description)
