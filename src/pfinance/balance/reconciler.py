"""Balance reconciliation.

Compares a running balance, computed from a baseline snapshot plus the
transactions booked since, against the live account balance and grades the
discrepancy. Everything here is a pure read-and-compute over plain values;
persistence lives in ``pfinance.services.balance``.

All amounts are integer minor units.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol


class LedgerEntry(Protocol):
    txn_date: date
    amount: int
    type: str


@dataclass(frozen=True)
class Baseline:
    """The active balance snapshot (e.g. the selected statement balance)."""

    balance: int
    balance_date: date | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class Thresholds:
    """Discrepancy grading limits, inclusive.

    ``|difference| <= alert`` is within threshold; above ``alert`` raises a
    medium alert, above ``high`` a high one.
    """

    alert: int = 5000
    high: int = 20000


@dataclass(frozen=True)
class ValidationReport:
    has_baseline: bool
    base_balance: int
    base_date: date | None
    file_source: str | None
    calculated_balance: int
    live_balance: int | None
    difference: int
    threshold: int
    is_within_threshold: bool
    has_alert: bool
    alert_level: str | None
    transactions_considered: int


def net_flow(transactions: Iterable[LedgerEntry]) -> tuple[int, int]:
    """Return (net change, number of entries) for the given transactions.

    Amounts are magnitudes; the sign comes from the type.
    """
    total = 0
    count = 0
    for txn in transactions:
        if txn.type == "income":
            total += abs(txn.amount)
        elif txn.type == "expense":
            total -= abs(txn.amount)
        else:
            continue
        count += 1
    return total, count


def since(transactions: Iterable[LedgerEntry], start: date | None) -> list[LedgerEntry]:
    """Keep transactions dated on or after ``start`` (all when undated)."""
    if start is None:
        return list(transactions)
    return [t for t in transactions if t.txn_date >= start]


def alert_level(difference: int, thresholds: Thresholds) -> str | None:
    magnitude = abs(difference)
    if magnitude <= thresholds.alert:
        return None
    if magnitude > thresholds.high:
        return "high"
    return "medium"


def reconcile(
    baseline: Baseline | None,
    transactions: Iterable[LedgerEntry],
    live_balance: int | None = None,
    thresholds: Thresholds = Thresholds(),
) -> ValidationReport:
    """Reconcile the live balance against baseline + transactions.

    Args:
        baseline: Active snapshot, or None when no baseline is selected.
        transactions: Candidate transactions; those before the baseline date
            are ignored.
        live_balance: Current (possibly hand-edited) balance. When None the
            calculated balance is compared with the baseline itself.
        thresholds: Grading limits.

    Returns:
        ValidationReport. Without a baseline the base is reported as 0 and
        no alert is raised, since there is nothing to validate against.
    """
    if baseline is None:
        change, count = net_flow(transactions)
        reference = live_balance if live_balance is not None else 0
        return ValidationReport(
            has_baseline=False,
            base_balance=0,
            base_date=None,
            file_source=None,
            calculated_balance=change,
            live_balance=live_balance,
            difference=change - reference,
            threshold=thresholds.alert,
            is_within_threshold=True,
            has_alert=False,
            alert_level=None,
            transactions_considered=count,
        )

    change, count = net_flow(since(transactions, baseline.balance_date))
    calculated = baseline.balance + change
    reference = live_balance if live_balance is not None else baseline.balance
    difference = calculated - reference
    level = alert_level(difference, thresholds)

    return ValidationReport(
        has_baseline=True,
        base_balance=baseline.balance,
        base_date=baseline.balance_date,
        file_source=baseline.file_name,
        calculated_balance=calculated,
        live_balance=live_balance,
        difference=difference,
        threshold=thresholds.alert,
        is_within_threshold=level is None,
        has_alert=level is not None,
        alert_level=level,
        transactions_considered=count,
    )
