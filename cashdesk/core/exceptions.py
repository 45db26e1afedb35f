"""Error taxonomy shared by every cash desk module.

Each error carries a stable machine-readable ``code``, a human-readable
``message`` and a ``category`` that the HTTP layer maps to a status code:

    CashDeskError
    +-- ValidationError            (validation)
    +-- StateConflictError         (state_conflict)
    +-- AuthorizationError         (authorization)
    |   +-- ForbiddenError
    +-- NotFoundError              (not_found)
    +-- SecondFactorError          (second_factor)
        +-- InvalidSecondFactorError
        +-- SecondFactorConfigurationError

Messages never include persistence or cryptography library details.
"""

from __future__ import annotations

from typing import Any


class CashDeskError(Exception):
    """Base class for domain errors raised by the core."""

    code: str = "cashdesk_error"
    category: str = "internal"
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(CashDeskError):
    """Malformed or out-of-range input, rejected before any state change."""

    code = "validation_error"
    category = "validation"
    default_message = "Invalid input"


class StateConflictError(CashDeskError):
    """The target is not in a state that allows the requested operation."""

    code = "state_conflict"
    category = "state_conflict"
    default_message = "The resource is not in the expected state"


class AuthorizationError(CashDeskError):
    code = "authorization_error"
    category = "authorization"
    default_message = "Not allowed"


class ForbiddenError(AuthorizationError):
    """Wrong role or wrong owner for the requested action."""

    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class NotFoundError(CashDeskError):
    code = "not_found"
    category = "not_found"
    default_message = "Resource not found"


class SecondFactorError(CashDeskError):
    category = "second_factor"


class InvalidSecondFactorError(SecondFactorError):
    """Wrong, expired, reused or missing second-factor code."""

    code = "invalid_second_factor"
    default_message = "Invalid second-factor code"


class SecondFactorConfigurationError(SecondFactorError):
    """The account cannot be challenged: no usable secret on record."""

    code = "second_factor_configuration"
    default_message = "Second factor is not configured correctly for this account"


__all__ = [
    "AuthorizationError",
    "CashDeskError",
    "ForbiddenError",
    "InvalidSecondFactorError",
    "NotFoundError",
    "SecondFactorConfigurationError",
    "SecondFactorError",
    "StateConflictError",
    "ValidationError",
]
