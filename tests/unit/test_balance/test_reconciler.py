from dataclasses import dataclass
from datetime import date

import pytest

from pfinance.balance.reconciler import Baseline, Thresholds, alert_level, net_flow, reconcile


@dataclass
class Entry:
    txn_date: date
    amount: int
    type: str


BASELINE = Baseline(balance=100000, balance_date=date(2024, 3, 1), file_name="marzo.xlsx")


class TestReconcile:
    def test_calculated_is_baseline_plus_income_minus_expenses_since_baseline(self):
        txns = [
            Entry(date(2024, 2, 28), 99999, "expense"),  # before the baseline
            Entry(date(2024, 3, 1), 250000, "income"),
            Entry(date(2024, 3, 5), 4550, "expense"),
            Entry(date(2024, 3, 9), 12000, "expense"),
        ]
        report = reconcile(BASELINE, txns, live_balance=333450)

        assert report.has_baseline is True
        assert report.base_balance == 100000
        assert report.calculated_balance == 100000 + 250000 - 4550 - 12000
        assert report.difference == 0
        assert report.transactions_considered == 3
        assert report.file_source == "marzo.xlsx"

    def test_single_expense_reduces_baseline(self):
        txns = [Entry(date(2024, 3, 2), 5000, "expense")]
        report = reconcile(BASELINE, txns, live_balance=95000)

        assert report.calculated_balance == 95000
        assert report.difference == 0
        assert report.is_within_threshold is True

    def test_no_transactions_equals_baseline(self):
        report = reconcile(BASELINE, [], live_balance=100000)
        assert report.calculated_balance == 100000
        assert report.difference == 0
        assert report.is_within_threshold is True
        assert report.has_alert is False

    def test_live_balance_defaults_to_baseline(self):
        txns = [Entry(date(2024, 3, 2), 1000, "expense")]
        report = reconcile(BASELINE, txns)
        assert report.live_balance is None
        assert report.difference == -1000

    def test_undated_baseline_uses_every_transaction(self):
        txns = [Entry(date(2001, 1, 1), 500, "income"), Entry(date(2030, 1, 1), 200, "expense")]
        report = reconcile(Baseline(balance=0), txns, live_balance=300)
        assert report.calculated_balance == 300
        assert report.transactions_considered == 2

    def test_no_baseline_reports_zero_base_and_no_alert(self):
        txns = [Entry(date(2024, 3, 2), 900000, "expense")]
        report = reconcile(None, txns, live_balance=100000)

        assert report.has_baseline is False
        assert report.base_balance == 0
        assert report.has_alert is False
        assert report.alert_level is None
        assert report.is_within_threshold is True

    @pytest.mark.parametrize(
        "live, within, level",
        [
            (100000 - 5000, True, None),
            (100000 - 5001, False, "medium"),
            (100000 + 5001, False, "medium"),
            (100000 - 20000, False, "medium"),
            (100000 - 20100, False, "high"),
            (100000 + 20100, False, "high"),
        ],
    )
    def test_threshold_grading(self, live, within, level):
        report = reconcile(BASELINE, [], live_balance=live)
        assert report.is_within_threshold is within
        assert report.has_alert is (not within)
        assert report.alert_level == level
        assert report.threshold == 5000

    def test_custom_thresholds(self):
        report = reconcile(BASELINE, [], live_balance=99000, thresholds=Thresholds(alert=500, high=800))
        assert report.alert_level == "high"


def test_alert_level_boundaries():
    thresholds = Thresholds()
    assert alert_level(0, thresholds) is None
    assert alert_level(5000, thresholds) is None
    assert alert_level(-5001, thresholds) == "medium"
    assert alert_level(20000, thresholds) == "medium"
    assert alert_level(20001, thresholds) == "high"


def test_net_flow_ignores_unknown_types_and_sign_of_amount():
    entries = [
        Entry(date(2024, 1, 1), 1000, "income"),
        Entry(date(2024, 1, 1), -300, "expense"),
        Entry(date(2024, 1, 1), 50, "transfer"),
    ]
    assert net_flow(entries) == (700, 2)
