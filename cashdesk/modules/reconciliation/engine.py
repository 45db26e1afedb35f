"""Declared totals, blind-count policy and cash variance."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import AbstractSet, Iterable, Optional, Protocol

from cashdesk.core.money import ZERO, MoneyInput, quantize, to_money
from cashdesk.modules.system_settings import BLIND_COUNT_FLAG, ConfigReader

from .exceptions import MissingCountedAmountError
from .models import ReconciliationPlan, SessionReconciliation

logger = logging.getLogger(__name__)


class DeclaredEntry(Protocol):
    payment_method_code: str
    amount: Decimal


class RecordedCount(Protocol):
    counted_cash_amount: Decimal


def compute_declared_total(entries: Iterable[DeclaredEntry]) -> Decimal:
    """Sum of every declared amount. Decimal addition keeps this order independent."""
    return quantize(sum((entry.amount for entry in entries), ZERO))


def declared_cash_amount(entries: Iterable[DeclaredEntry], cash_codes: AbstractSet[str]) -> Optional[Decimal]:
    """Declared cash, or ``None`` when no cash-flagged method was declared."""
    cash = [entry.amount for entry in entries if entry.payment_method_code in cash_codes]
    if not cash:
        return None
    return quantize(sum(cash, ZERO))


def compute_cash_variance(declared_cash: Optional[Decimal], counted_cash_amount: Decimal) -> Decimal:
    """``counted - declared``; zero on a cash-free day."""
    if declared_cash is None:
        return ZERO
    return quantize(counted_cash_amount - declared_cash)


def compute_reconciled_total(
    declared_total: Decimal,
    declared_cash: Optional[Decimal],
    counted_cash_amount: Optional[Decimal],
) -> Decimal:
    """Declared total with declared cash swapped for the supervisor's count."""
    if counted_cash_amount is None:
        return quantize(declared_total)
    return quantize(declared_total + compute_cash_variance(declared_cash, counted_cash_amount))


class ReconciliationEngine:
    def __init__(self, config_reader: ConfigReader) -> None:
        self._config_reader = config_reader

    async def is_blind_count_enabled(self) -> bool:
        # Read on every call: an admin may flip the flag between close and review.
        return await self._config_reader.get_flag(BLIND_COUNT_FLAG)

    async def plan(self, *, approved: bool, counted_cash_amount: MoneyInput | None) -> ReconciliationPlan:
        """Apply the policy in force now to an adjudication request."""
        blind_count = await self.is_blind_count_enabled()
        counted = None
        if approved and blind_count:
            if counted_cash_amount is None:
                raise MissingCountedAmountError()
            counted = to_money(counted_cash_amount, field="counted_cash_amount")
        elif counted_cash_amount is not None:
            logger.debug("Counted amount ignored (approved=%s, blind_count=%s)", approved, blind_count)
        return ReconciliationPlan(approved=approved, blind_count=blind_count, counted_cash_amount=counted)

    @staticmethod
    def summarize(
        entries: Iterable[DeclaredEntry],
        cash_codes: AbstractSet[str],
        count: Optional[RecordedCount] = None,
    ) -> SessionReconciliation:
        entries = list(entries)
        declared_total = compute_declared_total(entries)
        declared_cash = declared_cash_amount(entries, cash_codes)
        counted = count.counted_cash_amount if count is not None else None
        variance = compute_cash_variance(declared_cash, counted) if counted is not None else ZERO
        return SessionReconciliation(
            declared_total=declared_total,
            declared_cash=declared_cash,
            counted_cash=counted,
            cash_variance=variance,
            reconciled_total=compute_reconciled_total(declared_total, declared_cash, counted),
        )
