"""Repository protocol for second-factor credentials."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import SecondFactorCredentials, StoredRecoveryCode


class SecondFactorRepository(Protocol):
    async def get_credentials(self, account_id: str) -> SecondFactorCredentials | None:
        ...

    async def store_enrollment(self, account_id: str, *, encrypted_secret: str, recovery_code_hashes: Sequence[str]) -> None:
        """Replace the secret and every recovery code; leaves the factor inactive."""
        ...

    async def set_enabled(self, account_id: str, enabled: bool) -> None:
        ...

    async def clear_enrollment(self, account_id: str) -> None:
        """Remove the secret and every recovery code and disable the factor."""
        ...

    async def list_unused_recovery_codes(self, account_id: str) -> Sequence[StoredRecoveryCode]:
        ...

    async def consume_recovery_code(self, code_id: str, used_at: datetime) -> bool:
        """Mark a code used; ``False`` when another transaction got there first."""
        ...
