import pytest

from cashdesk.core.crypto import SecretCipher, SecretDecryptionError, hash_password, verify_password


def test_encrypting_twice_gives_different_tokens():
    cipher = SecretCipher("master-key-one")
    first = cipher.encrypt("JBSWY3DPEHPK3PXP")
    second = cipher.encrypt("JBSWY3DPEHPK3PXP")

    assert first != second
    assert cipher.decrypt(first) == "JBSWY3DPEHPK3PXP"
    assert cipher.decrypt(second) == "JBSWY3DPEHPK3PXP"


def test_decrypt_with_wrong_key_fails():
    token = SecretCipher("master-key-one").encrypt("JBSWY3DPEHPK3PXP")
    with pytest.raises(SecretDecryptionError):
        SecretCipher("master-key-two").decrypt(token)


@pytest.mark.parametrize("token", ["", "not base64 at all!", "AAAA", "AgAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA=="])
def test_decrypt_rejects_malformed_tokens(token):
    with pytest.raises(SecretDecryptionError):
        SecretCipher("master-key-one").decrypt(token)


def test_tampered_token_fails_authentication():
    cipher = SecretCipher("master-key-one")
    token = cipher.encrypt("JBSWY3DPEHPK3PXP")
    tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
    with pytest.raises(SecretDecryptionError):
        cipher.decrypt(tampered)


def test_empty_master_key_is_refused():
    with pytest.raises(ValueError):
        SecretCipher("")


def test_password_hash_roundtrip():
    hashed = hash_password("Operador@123", rounds=4)
    assert verify_password("Operador@123", hashed)
    assert not verify_password("Operador@124", hashed)
    assert not verify_password("Operador@123", "not-a-bcrypt-hash")
