"""Results produced by the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(slots=True, frozen=True)
class ReconciliationPlan:
    """What an adjudication has to record, given the policy in force right now."""

    approved: bool
    blind_count: bool
    counted_cash_amount: Optional[Decimal]

    @property
    def creates_supervisor_count(self) -> bool:
        return self.approved and self.blind_count


@dataclass(slots=True, frozen=True)
class SessionReconciliation:
    declared_total: Decimal
    declared_cash: Optional[Decimal]
    counted_cash: Optional[Decimal]
    cash_variance: Decimal
    reconciled_total: Decimal
