"""Daily finalization errors."""

from cashdesk.core.exceptions import StateConflictError


class AlreadyFinalizedError(StateConflictError):
    code = "already_finalized"
    default_message = "The business date has already been finalized"


class NoApprovedSessionsError(StateConflictError):
    code = "no_approved_sessions"
    default_message = "There are no approved cash sessions for this business date"


class PendingSessionsError(StateConflictError):
    """Some session of the date is still open or waiting for review."""

    code = "pending_sessions"
    default_message = "Every cash session of the business date must be adjudicated first"
