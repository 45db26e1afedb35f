import pyotp
import pytest
from sqlalchemy import update

from cashdesk.core.exceptions import StateConflictError
from cashdesk.db.models import Account as AccountModel
from cashdesk.modules.accounts import AccountNotFoundError, Role
from cashdesk.modules.second_factor import (
    InvalidSecondFactorError,
    SecondFactorAlreadyEnabledError,
    SecondFactorConfigurationError,
    SecondFactorMethod,
    SecondFactorNotEnrolledError,
    SecondFactorService,
)


async def test_totp_code_passes_the_gate(desk, operator):
    check = await desk.second_factor("require", operator.account_id, operator.code())
    assert check.method is SecondFactorMethod.TOTP


async def test_wrong_code_is_rejected(desk, operator):
    wrong = "000000" if operator.code() != "000000" else "111111"
    with pytest.raises(InvalidSecondFactorError):
        await desk.second_factor("require", operator.account_id, wrong)


@pytest.mark.parametrize("code", [None, "", "   "])
async def test_blank_code_is_rejected(desk, operator, code):
    with pytest.raises(InvalidSecondFactorError):
        await desk.second_factor("require", operator.account_id, code)


async def test_recovery_code_is_single_use(desk, operator):
    code = operator.recovery_codes[0]

    check = await desk.second_factor("require", operator.account_id, code.lower())
    assert check.method is SecondFactorMethod.RECOVERY_CODE
    assert await desk.second_factor("remaining_recovery_codes", operator.account_id) == 2

    with pytest.raises(InvalidSecondFactorError):
        await desk.second_factor("require", operator.account_id, code)


async def test_recovery_code_survives_a_rolled_back_operation(desk, operator):
    code = operator.recovery_codes[1]

    with pytest.raises(RuntimeError):
        async with desk.factory() as db:
            async with db.begin():
                await SecondFactorService.with_session(db, desk.settings).require(operator.account_id, code)
                raise RuntimeError("operation failed after the gate")

    check = await desk.second_factor("require", operator.account_id, code)
    assert check.method is SecondFactorMethod.RECOVERY_CODE


async def test_account_without_second_factor_is_never_bypassed(desk, make_user):
    user = await make_user("sem.mfa", Role.OPERATOR, enroll=False)
    with pytest.raises(SecondFactorNotEnrolledError) as excinfo:
        await desk.second_factor("require", user.account_id, "123456")
    assert isinstance(excinfo.value, SecondFactorConfigurationError)


async def test_corrupted_secret_is_a_configuration_error(desk, session_factory, operator):
    async with session_factory() as db:
        async with db.begin():
            await db.execute(
                update(AccountModel).where(AccountModel.id == operator.account_id).values(mfa_secret="garbage")
            )

    with pytest.raises(SecondFactorConfigurationError):
        await desk.second_factor("require", operator.account_id, operator.code())


async def test_enrollment_stays_inactive_until_activated(desk, make_user):
    user = await make_user("novo.operador", Role.OPERATOR, enroll=False)

    enrollment = await desk.second_factor("enroll", user.account_id)
    with pytest.raises(SecondFactorNotEnrolledError):
        await desk.second_factor("require", user.account_id, pyotp.TOTP(enrollment.secret).now())

    await desk.second_factor("activate", user.account_id, pyotp.TOTP(enrollment.secret).now())
    check = await desk.second_factor("require", user.account_id, pyotp.TOTP(enrollment.secret).now())
    assert check.method is SecondFactorMethod.TOTP
    assert await desk.second_factor("remaining_recovery_codes", user.account_id) == 3


async def test_activation_with_wrong_code_fails(desk, make_user):
    user = await make_user("outro.operador", Role.OPERATOR, enroll=False)
    enrollment = await desk.second_factor("enroll", user.account_id)
    valid = pyotp.TOTP(enrollment.secret).now()
    wrong = "000000" if valid != "000000" else "111111"

    with pytest.raises(InvalidSecondFactorError):
        await desk.second_factor("activate", user.account_id, wrong)


async def test_active_factor_is_not_replaced_without_current_code(desk, operator):
    with pytest.raises(SecondFactorAlreadyEnabledError) as excinfo:
        await desk.second_factor("enroll", operator.account_id)
    assert isinstance(excinfo.value, StateConflictError)

    wrong = "000000" if operator.code() != "000000" else "111111"
    with pytest.raises(InvalidSecondFactorError):
        await desk.second_factor("enroll", operator.account_id, wrong)

    check = await desk.second_factor("require", operator.account_id, operator.code())
    assert check.method is SecondFactorMethod.TOTP
    assert await desk.second_factor("remaining_recovery_codes", operator.account_id) == 3


async def test_rotation_with_current_code(desk, operator):
    enrollment = await desk.second_factor("enroll", operator.account_id, operator.code())
    assert enrollment.secret != operator.secret

    with pytest.raises(SecondFactorNotEnrolledError):
        await desk.second_factor("require", operator.account_id, pyotp.TOTP(enrollment.secret).now())

    await desk.second_factor("activate", operator.account_id, pyotp.TOTP(enrollment.secret).now())
    check = await desk.second_factor("require", operator.account_id, pyotp.TOTP(enrollment.secret).now())
    assert check.method is SecondFactorMethod.TOTP


async def test_reset_clears_the_factor(desk, operator):
    await desk.second_factor("reset", operator.account_id)

    with pytest.raises(SecondFactorNotEnrolledError):
        await desk.second_factor("require", operator.account_id, operator.code())
    assert await desk.second_factor("remaining_recovery_codes", operator.account_id) == 0

    enrollment = await desk.second_factor("enroll", operator.account_id)
    assert len(enrollment.recovery_codes) == 3


async def test_reset_of_unknown_account(desk):
    with pytest.raises(AccountNotFoundError):
        await desk.second_factor("reset", "missing-account")
