"""Cash desk feature modules."""

from . import accounts, cash_sessions, finalization, payment_methods, reconciliation, second_factor, system_settings

__all__ = [
    "accounts",
    "cash_sessions",
    "finalization",
    "payment_methods",
    "reconciliation",
    "second_factor",
    "system_settings",
]
