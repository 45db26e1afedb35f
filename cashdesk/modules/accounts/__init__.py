"""Accounts, roles and the caller identity used by the core."""

from .exceptions import AccountAlreadyExistsError, AccountNotFoundError, UnknownRoleError
from .models import UNSET, Account, AccountCreateInput, AccountUpdateInput, Actor, Role
from .service import AccountService, parse_role

__all__ = [
    "UNSET",
    "Account",
    "AccountAlreadyExistsError",
    "AccountCreateInput",
    "AccountNotFoundError",
    "AccountService",
    "AccountUpdateInput",
    "Actor",
    "Role",
    "UnknownRoleError",
    "parse_role",
]
