"""Reconciliation engine: declared totals, blind-count policy and cash variance."""

from .engine import (
    ReconciliationEngine,
    compute_cash_variance,
    compute_declared_total,
    compute_reconciled_total,
    declared_cash_amount,
)
from .exceptions import MissingCountedAmountError, MissingRejectionReasonError
from .models import ReconciliationPlan, SessionReconciliation

__all__ = [
    "MissingCountedAmountError",
    "MissingRejectionReasonError",
    "ReconciliationEngine",
    "ReconciliationPlan",
    "SessionReconciliation",
    "compute_cash_variance",
    "compute_declared_total",
    "compute_reconciled_total",
    "declared_cash_amount",
]
