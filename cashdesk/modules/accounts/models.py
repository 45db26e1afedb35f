"""Domain models for accounts and the callers acting on the cash desk."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    OPERATOR = "operador_caixa"
    CASH_SUPERVISOR = "supervisor_caixa"
    CONFERENCE_SUPERVISOR = "supervisor_conferencia"
    ADMIN = "admin"


@dataclass(slots=True)
class Account:
    id: str
    username: str
    role: Role
    is_active: bool
    password_hash: str = field(repr=False)
    full_name: Optional[str] = None
    email: Optional[str] = None
    mfa_enabled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def as_actor(self) -> "Actor":
        return Actor(account_id=self.id, role=self.role)


@dataclass(slots=True, frozen=True)
class Actor:
    """Caller identity handed to the core by the identity layer."""

    account_id: str
    role: Role

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


@dataclass(slots=True)
class AccountCreateInput:
    username: str
    password: str
    role: Role = Role.OPERATOR
    full_name: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class AccountUpdateInput:
    full_name: Optional[str] | object = UNSET
    email: Optional[str] | object = UNSET
    is_active: Optional[bool] | object = UNSET
    role: Optional[Role] | object = UNSET
    password: Optional[str] | object = UNSET
