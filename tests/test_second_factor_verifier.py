import time

import pyotp
import pytest

from cashdesk.core.crypto import hash_password
from cashdesk.modules.second_factor import SecondFactorConfigurationError, SecondFactorVerifier
from cashdesk.modules.second_factor.verifier import (
    RECOVERY_CODE_PATTERN,
    looks_like_recovery_code,
    normalize_recovery_code,
)

SECRET = "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP"
NOW = 1_790_000_000


@pytest.fixture
def verifier():
    return SecondFactorVerifier(issuer="Cartorio Koerner", valid_window=1, recovery_code_count=4, hash_rounds=4)


def test_code_for_current_step_passes(verifier):
    code = pyotp.TOTP(SECRET).at(NOW)
    assert verifier.verify_code(SECRET, code, for_time=NOW)


def test_neighbouring_step_is_tolerated(verifier):
    code = pyotp.TOTP(SECRET).at(NOW - 30)
    assert verifier.verify_code(SECRET, code, for_time=NOW)


def test_code_from_ten_steps_ago_fails(verifier):
    totp = pyotp.TOTP(SECRET)
    stale = totp.at(NOW - 300)
    recent = {totp.at(NOW + offset) for offset in (-30, 0, 30)}
    if stale in recent:
        pytest.skip("stale code collides with the accepted window")
    assert not verifier.verify_code(SECRET, stale, for_time=NOW)


def test_wrong_six_digit_code_fails(verifier):
    totp = pyotp.TOTP(SECRET)
    accepted = {totp.at(NOW + offset) for offset in (-30, 0, 30)}
    wrong = next(f"{n:06d}" for n in range(1_000_000) if f"{n:06d}" not in accepted)
    assert not verifier.verify_code(SECRET, wrong, for_time=NOW)


@pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef", "12 456", None, 123456, "１２３４５６"])
def test_malformed_code_returns_false(verifier, code):
    assert verifier.verify_code(SECRET, code, for_time=NOW) is False


@pytest.mark.parametrize("secret", ["", None])
def test_missing_secret_is_a_configuration_error(verifier, secret):
    with pytest.raises(SecondFactorConfigurationError):
        verifier.verify_code(secret, "123456")


def test_undecodable_secret_is_a_configuration_error(verifier):
    with pytest.raises(SecondFactorConfigurationError):
        verifier.verify_code("not-base32-!!", "123456")


def test_enroll_issues_secret_uri_and_codes(verifier):
    enrollment = verifier.enroll("operador")

    assert len(enrollment.secret) == 32
    assert enrollment.provisioning_uri.startswith("otpauth://totp/")
    assert "issuer=Cartorio%20Koerner" in enrollment.provisioning_uri
    assert len(enrollment.recovery_codes) == 4
    assert len(set(enrollment.recovery_codes)) == 4
    assert all(RECOVERY_CODE_PATTERN.match(code) for code in enrollment.recovery_codes)
    assert verifier.verify_code(enrollment.secret, pyotp.TOTP(enrollment.secret).now())


def test_recovery_code_matches_stored_hash(verifier):
    hashes = [hash_password(code, 4) for code in ("AAAA-1111", "BBBB-2222")]

    match = verifier.verify_recovery_code(" bbbb-2222 ", hashes)

    assert match.valid
    assert match.matched_hash == hashes[1]


@pytest.mark.parametrize("code", ["CCCC-3333", "BBBB2222", "", None, "ZZZZ-2222"])
def test_recovery_code_rejections(verifier, code):
    hashes = [verifier.hash_recovery_code("BBBB-2222")]
    match = verifier.verify_recovery_code(code, hashes)
    assert not match.valid
    assert match.matched_hash is None


def test_recovery_code_shape_helpers():
    assert normalize_recovery_code(" ab12-cd34 ") == "AB12-CD34"
    assert looks_like_recovery_code("ab12-cd34")
    assert not looks_like_recovery_code("123456")
    assert not looks_like_recovery_code(None)


def test_current_code_uses_the_clock(verifier):
    assert verifier.current_code(SECRET, for_time=NOW) == pyotp.TOTP(SECRET).at(NOW)
    assert verifier.verify_code(SECRET, verifier.current_code(SECRET), for_time=int(time.time()))
