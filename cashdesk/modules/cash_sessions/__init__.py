"""Cash session lifecycle state machine."""

from .exceptions import (
    BusinessDateFinalizedError,
    ConcurrentSessionUpdateError,
    DuplicateSessionError,
    EntryNotFoundError,
    NoEntriesError,
    SessionNotFoundError,
    SessionNotOpenError,
    SessionNotPendingReviewError,
)
from .models import (
    ALLOWED_TRANSITIONS,
    NON_TERMINAL_STATES,
    TERMINAL_STATES,
    CashSession,
    PaymentEntry,
    ReconciliationResult,
    ReviewSheet,
    SessionState,
    SessionSummary,
    SupervisorCount,
    can_transition,
)
from .repository import CashSessionRepository
from .service import CashSessionService, FinalizedDates

__all__ = [
    "ALLOWED_TRANSITIONS",
    "BusinessDateFinalizedError",
    "CashSession",
    "CashSessionRepository",
    "CashSessionService",
    "ConcurrentSessionUpdateError",
    "DuplicateSessionError",
    "EntryNotFoundError",
    "FinalizedDates",
    "NON_TERMINAL_STATES",
    "NoEntriesError",
    "PaymentEntry",
    "ReconciliationResult",
    "ReviewSheet",
    "SessionNotFoundError",
    "SessionNotOpenError",
    "SessionNotPendingReviewError",
    "SessionState",
    "SessionSummary",
    "SupervisorCount",
    "TERMINAL_STATES",
    "can_transition",
]
