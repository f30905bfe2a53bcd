"""Deterministic, rule-based transaction categorization.

Rules are user-editable rows (pattern + match type + priority) attached to a
category. A description is matched against the enabled rules in priority
order and the first hit wins; when nothing matches the fallback category is
returned.

Evaluation is a pure function of (description, rules):
- fast (no external calls)
- explainable (the winning rule can be reported)
- safe for bulk passes (a malformed rule is skipped, never fatal)
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Altro"

MATCH_TYPES: frozenset[str] = frozenset({"contains", "starts_with", "ends_with", "regex"})


def normalize_description(text: str | None) -> str:
    """Normalize a description for matching.

    Lowercases, trims, collapses whitespace and strips accents so that
    "CAFFÈ  Roma" and "caffe roma" compare equal.
    """
    text = re.sub(r"\s+", " ", (text or "").strip().lower())
    return strip_accents(text)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


@dataclass(frozen=True)
class Rule:
    """A categorization rule, detached from the ORM."""

    id: int
    category: str
    pattern: str
    match_type: str = "contains"
    priority: int = 0
    enabled: bool = True

    @classmethod
    def from_model(cls, row) -> "Rule":
        """Build from a ``CategoryRule`` row with its category loaded."""
        return cls(
            id=row.id,
            category=row.category.name,
            pattern=row.pattern,
            match_type=row.match_type,
            priority=row.priority,
            enabled=row.enabled,
        )


@dataclass(frozen=True)
class RuleError:
    """A rule that could not be compiled and was skipped."""

    rule_id: int
    pattern: str
    error: str


@dataclass(frozen=True)
class _CompiledRule:
    rule: Rule
    matches: Callable[[str], bool]


def sort_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Return the enabled rules in evaluation order.

    Lower priority numbers are evaluated first; rule id breaks ties so the
    order is stable across runs.
    """
    return sorted((r for r in rules if r.enabled), key=lambda r: (r.priority, r.id))


def compile_rule(rule: Rule) -> Callable[[str], bool]:
    """Build a predicate over normalized descriptions.

    Raises:
        ValueError: If the match type is unknown or the regex is malformed.
    """
    if rule.match_type == "regex":
        # Matched against the normalized description: accents in the pattern
        # are stripped too, and runs of whitespace arrive as a single space.
        try:
            regex = re.compile(strip_accents(rule.pattern), re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"invalid regex: {e}") from e
        return lambda text: regex.search(text) is not None

    needle = normalize_description(rule.pattern)
    if not needle:
        raise ValueError("empty pattern")

    if rule.match_type == "contains":
        return lambda text: needle in text
    if rule.match_type == "starts_with":
        return lambda text: text.startswith(needle)
    if rule.match_type == "ends_with":
        return lambda text: text.endswith(needle)

    raise ValueError(f"unknown match type: {rule.match_type}")


def compile_rules(
    rules: Iterable[Rule],
) -> tuple[list[_CompiledRule], list[RuleError]]:
    """Compile enabled rules in evaluation order.

    Returns:
        (compiled rules, failures). A malformed rule lands in failures and is
        left out of the compiled list.
    """
    compiled: list[_CompiledRule] = []
    failures: list[RuleError] = []
    for rule in sort_rules(rules):
        try:
            compiled.append(_CompiledRule(rule=rule, matches=compile_rule(rule)))
        except ValueError as e:
            logger.warning(
                "Skipping malformed category rule",
                extra={"rule_id": rule.id, "match_type": rule.match_type, "error": str(e)},
            )
            failures.append(RuleError(rule_id=rule.id, pattern=rule.pattern, error=str(e)))
    return compiled, failures


class RuleSet:
    """An ordered, compiled set of rules.

    Build it once per pass and reuse it for every transaction. Rules that
    fail to compile are dropped and listed in ``errors``.
    """

    def __init__(self, rules: Iterable[Rule], fallback: str = FALLBACK_CATEGORY):
        self.fallback = fallback
        self._compiled, self.errors = compile_rules(rules)

    def __len__(self) -> int:
        return len(self._compiled)

    @property
    def rules(self) -> list[Rule]:
        return [c.rule for c in self._compiled]

    def match(self, description: str | None) -> Rule | None:
        """Return the first rule matching the description, if any."""
        text = normalize_description(description)
        if not text:
            return None
        for compiled in self._compiled:
            if compiled.matches(text):
                return compiled.rule
        return None

    def categorize(self, description: str | None) -> str:
        rule = self.match(description)
        return rule.category if rule else self.fallback


def categorize(
    description: str | None,
    rules: Iterable[Rule] | RuleSet,
    fallback: str = FALLBACK_CATEGORY,
) -> str:
    """Infer a category name from a transaction description.

    Args:
        description: Raw description text (may be empty or garbled).
        rules: Rules to evaluate, or an already built RuleSet.
        fallback: Category returned when no rule matches.

    Returns:
        The owning category name of the first matching rule, or ``fallback``.
    """
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet(rules, fallback=fallback)
    return rule_set.categorize(description)


def preview_categorization(
    descriptions: Iterable[str], rules: Iterable[Rule] | RuleSet
) -> list[tuple[str, str]]:
    """Categorize descriptions without touching any stored transaction."""
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet(rules)
    return [(d, rule_set.categorize(d)) for d in descriptions]
