"""Balance reconciliation utilities."""

from .reconciler import Baseline, Thresholds, ValidationReport, alert_level, reconcile

__all__ = ["Baseline", "Thresholds", "ValidationReport", "alert_level", "reconcile"]
