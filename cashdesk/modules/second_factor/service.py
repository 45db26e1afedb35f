"""Enrollment and the step-up gate in front of every mutating cash operation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import Settings, get_settings
from cashdesk.core.crypto import SecretCipher, SecretDecryptionError
from cashdesk.modules.accounts.exceptions import AccountNotFoundError

from .exceptions import (
    InvalidSecondFactorError,
    SecondFactorAlreadyEnabledError,
    SecondFactorConfigurationError,
    SecondFactorNotEnrolledError,
)
from .models import Enrollment, SecondFactorCheck, SecondFactorCredentials, SecondFactorMethod
from .repository import SecondFactorRepository
from .verifier import SecondFactorVerifier, looks_like_recovery_code

logger = logging.getLogger(__name__)


class SecondFactorService:
    def __init__(
        self,
        repository: SecondFactorRepository,
        verifier: SecondFactorVerifier,
        cipher: SecretCipher,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._verifier = verifier
        self._cipher = cipher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def with_session(cls, session: AsyncSession, settings: Settings | None = None) -> "SecondFactorService":
        from cashdesk.infrastructure.database.repositories.second_factor_repository import SqlSecondFactorRepository

        settings = settings or get_settings()
        return cls(
            SqlSecondFactorRepository(session),
            SecondFactorVerifier.from_settings(settings),
            SecretCipher(settings.security.mfa_encryption_key),
        )

    async def _credentials(self, account_id: str) -> SecondFactorCredentials:
        credentials = await self._repository.get_credentials(account_id)
        if credentials is None:
            raise AccountNotFoundError(account_id=account_id)
        return credentials

    def _decrypt_secret(self, credentials: SecondFactorCredentials) -> str:
        if not credentials.encrypted_secret:
            logger.error("Account %s has a second factor enabled but no secret on record", credentials.account_id)
            raise SecondFactorConfigurationError()
        try:
            return self._cipher.decrypt(credentials.encrypted_secret)
        except SecretDecryptionError:
            logger.error("Second-factor secret of account %s cannot be decrypted", credentials.account_id)
            raise SecondFactorConfigurationError() from None

    def _verify_totp(self, credentials: SecondFactorCredentials, code: str) -> bool:
        secret = self._decrypt_secret(credentials)
        try:
            return self._verifier.verify_code(secret, code)
        except SecondFactorConfigurationError:
            logger.error("Second-factor secret of account %s is unreadable", credentials.account_id)
            raise

    async def enroll(self, account_id: str, current_code: Optional[str] = None) -> Enrollment:
        """Issue a new secret and recovery codes; the factor stays inactive until :meth:`activate`.

        An account whose factor is already active must prove it with
        ``current_code`` before the secret is rotated.
        """
        credentials = await self._credentials(account_id)
        if credentials.mfa_enabled:
            if not current_code:
                raise SecondFactorAlreadyEnabledError(account_id=account_id)
            await self.require(account_id, current_code)
            logger.warning("Second factor of account %s is being rotated", account_id)
        enrollment = self._verifier.enroll(credentials.username)
        await self._repository.store_enrollment(
            account_id,
            encrypted_secret=self._cipher.encrypt(enrollment.secret),
            recovery_code_hashes=[self._verifier.hash_recovery_code(code) for code in enrollment.recovery_codes],
        )
        logger.info("Second factor enrollment issued for account %s", account_id)
        return enrollment

    async def activate(self, account_id: str, submitted_code: str) -> None:
        credentials = await self._credentials(account_id)
        if not self._verify_totp(credentials, submitted_code):
            logger.warning("Second factor activation rejected for account %s", account_id)
            raise InvalidSecondFactorError()
        await self._repository.set_enabled(account_id, True)
        logger.info("Second factor activated for account %s", account_id)

    async def require(self, account_id: str, submitted_code: Optional[str]) -> SecondFactorCheck:
        """Gate a mutating action behind a valid TOTP or recovery code.

        A consumed recovery code is written in the caller's transaction, so it
        is only spent when the guarded operation commits.
        """
        credentials = await self._credentials(account_id)
        if not credentials.mfa_enabled:
            logger.error("Account %s attempted a guarded operation without a second factor", account_id)
            raise SecondFactorNotEnrolledError()
        if not submitted_code or not submitted_code.strip():
            raise InvalidSecondFactorError("A second-factor code is required")

        if looks_like_recovery_code(submitted_code):
            return await self._consume_recovery_code(account_id, submitted_code)

        if not self._verify_totp(credentials, submitted_code.strip()):
            logger.warning("Invalid second-factor code for account %s", account_id)
            raise InvalidSecondFactorError()
        return SecondFactorCheck(account_id=account_id, method=SecondFactorMethod.TOTP)

    async def _consume_recovery_code(self, account_id: str, submitted_code: str) -> SecondFactorCheck:
        stored = await self._repository.list_unused_recovery_codes(account_id)
        match = self._verifier.verify_recovery_code(submitted_code, [code.code_hash for code in stored])
        if not match.valid:
            logger.warning("Invalid recovery code for account %s", account_id)
            raise InvalidSecondFactorError()

        code_id = next(code.id for code in stored if code.code_hash == match.matched_hash)
        if not await self._repository.consume_recovery_code(code_id, self._clock()):
            logger.warning("Recovery code of account %s was consumed concurrently", account_id)
            raise InvalidSecondFactorError()
        logger.info("Recovery code used by account %s", account_id)
        return SecondFactorCheck(account_id=account_id, method=SecondFactorMethod.RECOVERY_CODE)

    async def reset(self, account_id: str) -> None:
        """Drop the secret and recovery codes so the account can enroll again."""
        await self._credentials(account_id)
        await self._repository.clear_enrollment(account_id)
        logger.warning("Second factor of account %s was reset", account_id)

    async def remaining_recovery_codes(self, account_id: str) -> int:
        await self._credentials(account_id)
        return len(await self._repository.list_unused_recovery_codes(account_id))
