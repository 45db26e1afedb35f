"""Account related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import get_settings
from cashdesk.infrastructure.database.repositories.account_repository import SqlAccountRepository
from cashdesk.modules.accounts.service import AccountService

from .database import get_db_session


def get_account_repository(db: AsyncSession = Depends(get_db_session)) -> SqlAccountRepository:
    return SqlAccountRepository(db)


def get_account_service(repository: SqlAccountRepository = Depends(get_account_repository)) -> AccountService:
    return AccountService(repository, bcrypt_rounds=get_settings().security.bcrypt_rounds)


__all__ = [
    "get_account_repository",
    "get_account_service",
]
