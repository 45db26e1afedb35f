"""Payment-method catalog errors."""

from cashdesk.core.exceptions import ValidationError


class UnknownPaymentMethodError(ValidationError):
    """Raised when an entry references a method that is missing or inactive."""

    code = "unknown_payment_method"
    default_message = "Payment method not found or inactive"
