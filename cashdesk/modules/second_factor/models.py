"""Value objects for second-factor enrollment and verification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SecondFactorMethod(str, Enum):
    TOTP = "totp"
    RECOVERY_CODE = "recovery_code"


@dataclass(slots=True, frozen=True)
class Enrollment:
    secret: str = field(repr=False)
    provisioning_uri: str = field(repr=False)
    recovery_codes: tuple[str, ...] = field(repr=False)


@dataclass(slots=True, frozen=True)
class RecoveryCodeMatch:
    valid: bool
    matched_hash: Optional[str] = field(default=None, repr=False)


@dataclass(slots=True, frozen=True)
class StoredRecoveryCode:
    id: str
    code_hash: str = field(repr=False)


@dataclass(slots=True)
class SecondFactorCredentials:
    account_id: str
    username: str
    mfa_enabled: bool
    encrypted_secret: Optional[str] = field(default=None, repr=False)


@dataclass(slots=True, frozen=True)
class SecondFactorCheck:
    account_id: str
    method: SecondFactorMethod
