"""Cash session lifecycle errors."""

from cashdesk.core.exceptions import ForbiddenError, NotFoundError, StateConflictError, ValidationError
from cashdesk.modules.reconciliation.exceptions import MissingCountedAmountError, MissingRejectionReasonError


class SessionNotFoundError(NotFoundError):
    code = "session_not_found"
    default_message = "Cash session not found"


class EntryNotFoundError(NotFoundError):
    code = "entry_not_found"
    default_message = "The session has no entry for this payment method"


class DuplicateSessionError(StateConflictError):
    """The operator already has a session that is still in progress."""

    code = "duplicate_session"
    default_message = "The operator already has an active cash session for this date"


class SessionNotOpenError(StateConflictError):
    code = "session_not_open"
    default_message = "The cash session is not open"


class SessionNotPendingReviewError(StateConflictError):
    code = "session_not_pending_review"
    default_message = "The cash session is not waiting for review"


class ConcurrentSessionUpdateError(StateConflictError):
    """The session changed between read and write; the caller should reload."""

    code = "concurrent_session_update"
    default_message = "The cash session was modified by another request"


class BusinessDateFinalizedError(StateConflictError):
    code = "business_date_finalized"
    default_message = "The business date has already been finalized"


class NoEntriesError(ValidationError):
    code = "no_entries"
    default_message = "At least one payment entry is required to close the session"


__all__ = [
    "BusinessDateFinalizedError",
    "ConcurrentSessionUpdateError",
    "DuplicateSessionError",
    "EntryNotFoundError",
    "ForbiddenError",
    "MissingCountedAmountError",
    "MissingRejectionReasonError",
    "NoEntriesError",
    "SessionNotFoundError",
    "SessionNotOpenError",
    "SessionNotPendingReviewError",
]
