"""Time-based one-time codes and single-use recovery codes.

The verifier is pure computation: it never touches the database. Callers fetch
the (decrypted) secret and the stored recovery-code hashes inside their own
transaction and are responsible for consuming a matched recovery code.
"""

from __future__ import annotations

import binascii
import re
import secrets
from datetime import datetime
from typing import Iterable, Optional, Union

import pyotp

from cashdesk.core.crypto import hash_password, verify_password

from .exceptions import SecondFactorConfigurationError
from .models import Enrollment, RecoveryCodeMatch

TOTP_CODE_PATTERN = re.compile(r"^[0-9]{6}$")
RECOVERY_CODE_PATTERN = re.compile(r"^[0-9A-F]{4}-[0-9A-F]{4}$")
SECRET_LENGTH = 32  # base32 characters, 160 bits

ForTime = Union[datetime, int, float, None]


def normalize_recovery_code(submitted_code: str) -> str:
    return submitted_code.strip().upper()


def looks_like_recovery_code(submitted_code: Optional[str]) -> bool:
    if not isinstance(submitted_code, str):
        return False
    return RECOVERY_CODE_PATTERN.match(normalize_recovery_code(submitted_code)) is not None


def generate_recovery_code() -> str:
    raw = secrets.token_hex(4).upper()
    return f"{raw[:4]}-{raw[4:]}"


class SecondFactorVerifier:
    """Validates TOTP codes and recovery codes, and issues new enrollments."""

    def __init__(
        self,
        *,
        issuer: str,
        valid_window: int = 1,
        recovery_code_count: int = 10,
        hash_rounds: int = 12,
    ) -> None:
        self.issuer = issuer
        self.valid_window = valid_window
        self.recovery_code_count = recovery_code_count
        self.hash_rounds = hash_rounds

    @classmethod
    def from_settings(cls, settings) -> "SecondFactorVerifier":
        return cls(
            issuer=settings.second_factor.issuer,
            valid_window=settings.second_factor.valid_window,
            recovery_code_count=settings.second_factor.recovery_code_count,
            hash_rounds=settings.security.bcrypt_rounds,
        )

    def verify_code(self, secret: Optional[str], submitted_code: Optional[str], *, for_time: ForTime = None) -> bool:
        """Check a 6-digit code against the current step and its neighbours.

        Malformed codes return ``False``. A missing or undecodable secret raises
        :class:`SecondFactorConfigurationError`.
        """
        if not secret:
            raise SecondFactorConfigurationError("No second-factor secret on record")
        if not isinstance(submitted_code, str) or not TOTP_CODE_PATTERN.match(submitted_code):
            return False

        totp = pyotp.TOTP(secret)
        try:
            return totp.verify(submitted_code, for_time=for_time, valid_window=self.valid_window)
        except (binascii.Error, ValueError) as exc:
            raise SecondFactorConfigurationError("Stored second-factor secret is unreadable") from exc

    def current_code(self, secret: str, *, for_time: ForTime = None) -> str:
        totp = pyotp.TOTP(secret)
        if for_time is None:
            return totp.now()
        return totp.at(for_time)

    def verify_recovery_code(self, submitted_code: Optional[str], stored_hashes: Iterable[str]) -> RecoveryCodeMatch:
        if not looks_like_recovery_code(submitted_code):
            return RecoveryCodeMatch(valid=False)
        candidate = normalize_recovery_code(submitted_code)
        for stored_hash in stored_hashes:
            if verify_password(candidate, stored_hash):
                return RecoveryCodeMatch(valid=True, matched_hash=stored_hash)
        return RecoveryCodeMatch(valid=False)

    def hash_recovery_code(self, code: str) -> str:
        return hash_password(normalize_recovery_code(code), self.hash_rounds)

    def enroll(self, account_label: str) -> Enrollment:
        secret = pyotp.random_base32(length=SECRET_LENGTH)
        uri = pyotp.TOTP(secret).provisioning_uri(name=account_label, issuer_name=self.issuer)
        codes: list[str] = []
        while len(codes) < self.recovery_code_count:
            code = generate_recovery_code()
            if code not in codes:
                codes.append(code)
        return Enrollment(secret=secret, provisioning_uri=uri, recovery_codes=tuple(codes))


__all__ = [
    "RECOVERY_CODE_PATTERN",
    "SECRET_LENGTH",
    "SecondFactorVerifier",
    "TOTP_CODE_PATTERN",
    "generate_recovery_code",
    "looks_like_recovery_code",
    "normalize_recovery_code",
]
