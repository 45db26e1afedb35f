"""Second-factor errors.

``InvalidSecondFactorError`` is the uniform "invalid code" answer. A missing or
corrupted secret is a configuration problem and is reported separately.
"""

from cashdesk.core.exceptions import InvalidSecondFactorError, SecondFactorConfigurationError, StateConflictError


class SecondFactorNotEnrolledError(SecondFactorConfigurationError):
    """The account has no active second factor; mutating actions stay blocked."""

    code = "second_factor_not_enrolled"
    default_message = "A second factor is required for this operation but the account has none"


class SecondFactorAlreadyEnabledError(StateConflictError):
    """A new secret cannot replace an active one without the current factor."""

    code = "second_factor_already_enabled"
    default_message = "A second factor is already active for this account"


__all__ = [
    "InvalidSecondFactorError",
    "SecondFactorAlreadyEnabledError",
    "SecondFactorConfigurationError",
    "SecondFactorNotEnrolledError",
]
