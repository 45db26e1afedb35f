"""Cash session lifecycle: states, allowed edges and records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cashdesk.modules.reconciliation.models import SessionReconciliation


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED_PENDING_REVIEW = "closed_pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    FINALIZED = "finalized"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({SessionState.REJECTED, SessionState.FINALIZED})
NON_TERMINAL_STATES = frozenset(set(SessionState) - TERMINAL_STATES)

ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.OPEN: frozenset({SessionState.CLOSED_PENDING_REVIEW}),
    SessionState.CLOSED_PENDING_REVIEW: frozenset({SessionState.APPROVED, SessionState.REJECTED}),
    SessionState.APPROVED: frozenset({SessionState.FINALIZED}),
    SessionState.REJECTED: frozenset(),
    SessionState.FINALIZED: frozenset(),
}


def can_transition(source: SessionState, target: SessionState) -> bool:
    return target in ALLOWED_TRANSITIONS[source]


@dataclass(slots=True)
class CashSession:
    id: str
    business_date: date
    opening_balance: Decimal
    state: SessionState
    opened_by: str
    opened_at: datetime
    version: int = 1
    declared_total: Optional[Decimal] = None
    system_integration_amount: Optional[Decimal] = None
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(slots=True)
class PaymentEntry:
    session_id: str
    payment_method_code: str
    amount: Decimal
    fill_order: int
    recorded_at: datetime


@dataclass(slots=True, frozen=True)
class SupervisorCount:
    session_id: str
    supervisor_id: str
    counted_cash_amount: Decimal
    recorded_at: datetime


@dataclass(slots=True, frozen=True)
class ReconciliationResult:
    session: CashSession
    blind_count: bool
    supervisor_count: Optional[SupervisorCount] = None
    # counted - declared cash; None when no count was taken
    variance: Optional[Decimal] = None


@dataclass(slots=True, frozen=True)
class ReviewSheet:
    """What a cash supervisor sees while adjudicating a closed session.

    Under blind count the cash-flagged entries are withheld so the supervisor
    counts the drawer without the operator's figure in mind. The declared
    total would give that figure back, so the sheet's session carries no totals.
    """

    session: CashSession
    blind_count: bool
    entries: tuple[PaymentEntry, ...]
    hidden_method_codes: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class SessionSummary:
    session: CashSession
    entries: tuple[PaymentEntry, ...]
    supervisor_count: Optional[SupervisorCount]
    reconciliation: Optional[SessionReconciliation]
    hidden_method_codes: tuple[str, ...] = ()
