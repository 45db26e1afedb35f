"""Password hashing and encryption of secrets at rest."""

from __future__ import annotations

import base64
import binascii
import secrets

import bcrypt
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

_TOKEN_VERSION = b"\x01"
_SALT_BYTES = 16
_NONCE_BYTES = 12
_KEY_BYTES = 32
_ASSOCIATED_DATA = b"cashdesk.second-factor.v1"


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash plain text password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


class SecretDecryptionError(ValueError):
    """Raised when a stored token cannot be decrypted with the current key."""


class SecretCipher:
    """AES-256-GCM with a scrypt-derived key per value.

    Every call to :meth:`encrypt` draws a fresh salt and nonce, so one derived
    key never covers more than one stored secret.
    """

    def __init__(self, master_key: str) -> None:
        if not master_key:
            raise ValueError("master key must not be empty")
        self._master_key = master_key.encode("utf-8")

    def _derive(self, salt: bytes) -> bytes:
        kdf = Scrypt(salt=salt, length=_KEY_BYTES, n=2**14, r=8, p=1)
        return kdf.derive(self._master_key)

    def encrypt(self, plaintext: str) -> str:
        salt = secrets.token_bytes(_SALT_BYTES)
        nonce = secrets.token_bytes(_NONCE_BYTES)
        ciphertext = AESGCM(self._derive(salt)).encrypt(nonce, plaintext.encode("utf-8"), _ASSOCIATED_DATA)
        return base64.urlsafe_b64encode(_TOKEN_VERSION + salt + nonce + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError, AttributeError) as exc:
            raise SecretDecryptionError("token is not valid base64") from exc

        header = len(_TOKEN_VERSION) + _SALT_BYTES + _NONCE_BYTES
        if len(raw) <= header or raw[:1] != _TOKEN_VERSION:
            raise SecretDecryptionError("unsupported token layout")

        salt = raw[1 : 1 + _SALT_BYTES]
        nonce = raw[1 + _SALT_BYTES : header]
        try:
            plaintext = AESGCM(self._derive(salt)).decrypt(nonce, raw[header:], _ASSOCIATED_DATA)
        except InvalidTag as exc:
            raise SecretDecryptionError("token failed authentication") from exc
        return plaintext.decode("utf-8")


__all__ = ["SecretCipher", "SecretDecryptionError", "hash_password", "verify_password"]
