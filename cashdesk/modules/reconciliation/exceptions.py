"""Reconciliation input errors."""

from cashdesk.core.exceptions import ValidationError


class MissingCountedAmountError(ValidationError):
    """Blind count is on and the supervisor approved without a counted amount."""

    code = "missing_counted_amount"
    default_message = "The counted cash amount is required while blind count is enabled"


class MissingRejectionReasonError(ValidationError):
    code = "missing_rejection_reason"
    default_message = "A rejection reason is required"
