"""Step-up second-factor verification (TOTP and recovery codes)."""

from .exceptions import (
    InvalidSecondFactorError,
    SecondFactorAlreadyEnabledError,
    SecondFactorConfigurationError,
    SecondFactorNotEnrolledError,
)
from .models import Enrollment, RecoveryCodeMatch, SecondFactorCheck, SecondFactorMethod
from .service import SecondFactorService
from .verifier import SecondFactorVerifier

__all__ = [
    "Enrollment",
    "InvalidSecondFactorError",
    "RecoveryCodeMatch",
    "SecondFactorAlreadyEnabledError",
    "SecondFactorCheck",
    "SecondFactorConfigurationError",
    "SecondFactorMethod",
    "SecondFactorNotEnrolledError",
    "SecondFactorService",
    "SecondFactorVerifier",
]
