"""Daily finalization records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from cashdesk.modules.cash_sessions.models import SessionSummary


@dataclass(slots=True, frozen=True)
class DailyFinalization:
    id: str
    business_date: date
    total_declared: Decimal
    total_reconciled: Decimal
    finalized_by: str
    finalized_at: datetime


@dataclass(slots=True, frozen=True)
class FinalizationResult:
    finalization: DailyFinalization
    session_ids: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DayOverview:
    business_date: date
    blind_count: bool
    sessions: tuple[SessionSummary, ...]
    pending_sessions: int
    finalization: Optional[DailyFinalization] = None

    @property
    def is_finalized(self) -> bool:
        return self.finalization is not None
