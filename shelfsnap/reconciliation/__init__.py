"""Planogram reconciliation engine."""

from shelfsnap.reconciliation.reconciler import (
    PlanogramReconciler,
    compliance_grade,
    compute_compliance_score,
    reconcile,
)

__all__ = [
    "PlanogramReconciler",
    "compliance_grade",
    "compute_compliance_score",
    "reconcile",
]
