"""Account domain specific exceptions."""

from cashdesk.core.exceptions import NotFoundError, StateConflictError, ValidationError


class AccountAlreadyExistsError(StateConflictError):
    """Raised when attempting to create an account with duplicate username."""

    code = "account_already_exists"
    default_message = "An account with this username already exists"


class AccountNotFoundError(NotFoundError):
    """Raised when the requested account cannot be found."""

    code = "account_not_found"
    default_message = "Account not found"


class UnknownRoleError(ValidationError):
    code = "unknown_role"
    default_message = "Unknown role"
