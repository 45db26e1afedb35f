"""Domain services for account management."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import get_settings
from cashdesk.core.crypto import hash_password, verify_password

from .exceptions import AccountAlreadyExistsError, AccountNotFoundError, UnknownRoleError
from .models import UNSET, Account, AccountCreateInput, AccountUpdateInput, Role
from .repository import AccountRepository

logger = logging.getLogger(__name__)


def parse_role(value: Role | str) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise UnknownRoleError(f"Unknown role: {value}", role=str(value)) from exc


class AccountService:
    """Encapsulates core account use cases."""

    def __init__(self, repository: AccountRepository, *, bcrypt_rounds: int = 12) -> None:
        self._repository = repository
        self._bcrypt_rounds = bcrypt_rounds

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        from cashdesk.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session), bcrypt_rounds=get_settings().security.bcrypt_rounds)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def require(self, account_id: str) -> Account:
        account = await self._repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id=account_id)
        return account

    async def get_by_username(self, username: str) -> Account | None:
        return await self._repository.get_by_username(username)

    async def list_accounts(self) -> Sequence[Account]:
        return await self._repository.list_accounts()

    async def authenticate(self, username: str, password: str) -> Account | None:
        account = await self._repository.get_by_username(username)
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        existing = await self._repository.get_by_username(payload.username)
        if existing is not None:
            raise AccountAlreadyExistsError(username=payload.username)

        account = await self._repository.create_account(
            username=payload.username,
            password_hash=hash_password(payload.password, self._bcrypt_rounds),
            role=parse_role(payload.role),
            full_name=payload.full_name,
            email=payload.email,
            is_active=payload.is_active,
        )
        logger.info("Account %s created with role %s", account.username, account.role.value)
        return account

    async def update_account(self, account_id: str, payload: AccountUpdateInput) -> Account:
        current = await self.require(account_id)

        password_hash = None
        if payload.password is not UNSET and payload.password is not None:
            password_hash = hash_password(payload.password, self._bcrypt_rounds)

        full_name = payload.full_name if payload.full_name is not UNSET else current.full_name
        email = payload.email if payload.email is not UNSET else current.email
        is_active = payload.is_active if payload.is_active is not UNSET else current.is_active
        role = parse_role(payload.role) if payload.role not in (UNSET, None) else current.role

        return await self._repository.update_account(
            account_id,
            full_name=full_name,
            email=email,
            is_active=is_active,
            role=role,
            password_hash=password_hash,
        )

    async def set_last_login(self, account_id: str) -> None:
        await self._repository.set_last_login(account_id, datetime.now(timezone.utc))
