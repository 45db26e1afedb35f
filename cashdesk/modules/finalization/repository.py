"""Repository protocol for daily finalizations."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from .models import DailyFinalization


class FinalizationRepository(Protocol):
    async def get_by_date(self, business_date: date) -> DailyFinalization | None:
        ...

    async def is_finalized(self, business_date: date) -> bool:
        ...

    async def create(
        self,
        *,
        business_date: date,
        total_declared: Decimal,
        total_reconciled: Decimal,
        finalized_by: str,
        finalized_at: datetime,
    ) -> DailyFinalization:
        """Insert the record; raises ``AlreadyFinalizedError`` when the date is taken."""
        ...
