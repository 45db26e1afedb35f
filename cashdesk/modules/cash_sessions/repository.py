"""Repository protocol for cash sessions and their entries."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Collection, Protocol, Sequence

from .models import CashSession, PaymentEntry, SessionState, SupervisorCount


class CashSessionRepository(Protocol):
    async def get(self, session_id: str) -> CashSession | None:
        ...

    async def find_non_terminal(self, operator_id: str, business_date: date) -> CashSession | None:
        ...

    async def find_open(self, operator_id: str) -> CashSession | None:
        """Any open session of the operator, whatever its business date."""
        ...

    async def create(
        self,
        *,
        operator_id: str,
        business_date: date,
        opening_balance: Decimal,
        opened_at: datetime,
    ) -> CashSession:
        """Insert an open session; raises ``DuplicateSessionError`` on a unique clash."""
        ...

    async def transition(
        self,
        session_id: str,
        *,
        expected_state: SessionState,
        expected_version: int,
        new_state: SessionState,
        **values: Any,
    ) -> CashSession | None:
        """Compare-and-set on ``(state, version)``; ``None`` when the guard fails."""
        ...

    async def touch(self, session_id: str, *, expected_state: SessionState) -> bool:
        """Bump the version while the state still matches."""
        ...

    async def list_entries(self, session_id: str) -> Sequence[PaymentEntry]:
        ...

    async def upsert_entry(
        self,
        session_id: str,
        *,
        payment_method_code: str,
        amount: Decimal,
        recorded_at: datetime,
    ) -> PaymentEntry:
        ...

    async def delete_entry(self, session_id: str, payment_method_code: str) -> bool:
        ...

    async def add_supervisor_count(self, count: SupervisorCount) -> SupervisorCount:
        ...

    async def get_supervisor_count(self, session_id: str) -> SupervisorCount | None:
        ...

    async def list_by_state(
        self,
        states: Collection[SessionState],
        *,
        business_date: date | None = None,
    ) -> Sequence[CashSession]:
        ...

    async def finalize_sessions(self, session_ids: Collection[str], business_date: date) -> int:
        """Move approved sessions of the date to finalized; returns rows changed."""
        ...
