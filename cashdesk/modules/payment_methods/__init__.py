"""Payment-method catalog (managed outside the core, read-only here)."""

from .exceptions import UnknownPaymentMethodError
from .models import PaymentMethod
from .repository import PaymentMethodCatalog

__all__ = ["PaymentMethod", "PaymentMethodCatalog", "UnknownPaymentMethodError"]
