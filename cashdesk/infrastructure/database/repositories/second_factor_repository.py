"""SQLAlchemy implementation of the second-factor repository."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.db.models import Account as AccountModel
from cashdesk.db.models import RecoveryCode as RecoveryCodeModel
from cashdesk.modules.accounts.exceptions import AccountNotFoundError
from cashdesk.modules.second_factor.models import SecondFactorCredentials, StoredRecoveryCode


class SqlSecondFactorRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_credentials(self, account_id: str) -> SecondFactorCredentials | None:
        stmt = select(AccountModel).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return SecondFactorCredentials(
            account_id=model.id,
            username=model.username,
            mfa_enabled=bool(model.mfa_enabled),
            encrypted_secret=model.mfa_secret,
        )

    async def store_enrollment(
        self,
        account_id: str,
        *,
        encrypted_secret: str,
        recovery_code_hashes: Sequence[str],
    ) -> None:
        result = await self._session.execute(
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .values(mfa_secret=encrypted_secret, mfa_enabled=False)
        )
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id=account_id)

        await self._session.execute(delete(RecoveryCodeModel).where(RecoveryCodeModel.account_id == account_id))
        self._session.add_all(
            RecoveryCodeModel(account_id=account_id, code_hash=code_hash) for code_hash in recovery_code_hashes
        )
        await self._session.flush()

    async def set_enabled(self, account_id: str, enabled: bool) -> None:
        await self._session.execute(
            update(AccountModel).where(AccountModel.id == account_id).values(mfa_enabled=enabled)
        )

    async def clear_enrollment(self, account_id: str) -> None:
        result = await self._session.execute(
            update(AccountModel).where(AccountModel.id == account_id).values(mfa_secret=None, mfa_enabled=False)
        )
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id=account_id)
        await self._session.execute(delete(RecoveryCodeModel).where(RecoveryCodeModel.account_id == account_id))

    async def list_unused_recovery_codes(self, account_id: str) -> Sequence[StoredRecoveryCode]:
        stmt = select(RecoveryCodeModel).where(
            RecoveryCodeModel.account_id == account_id,
            RecoveryCodeModel.used_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return [StoredRecoveryCode(id=row.id, code_hash=row.code_hash) for row in result.scalars().all()]

    async def consume_recovery_code(self, code_id: str, used_at: datetime) -> bool:
        result = await self._session.execute(
            update(RecoveryCodeModel)
            .where(RecoveryCodeModel.id == code_id, RecoveryCodeModel.used_at.is_(None))
            .values(used_at=used_at)
        )
        return result.rowcount == 1
