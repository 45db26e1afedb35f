"""Second-factor enrollment for the logged-in account."""
from typing import Optional

from fastapi import APIRouter, Depends, status

from cashdesk.core.security import get_current_account
from cashdesk.interfaces.http.deps import get_second_factor_service
from cashdesk.modules.accounts import Account as AccountDomain
from cashdesk.modules.second_factor import SecondFactorService
from cashdesk.schemas import (
    SecondFactorActivateRequest,
    SecondFactorEnrollRequest,
    SecondFactorEnrollmentResponse,
    SecondFactorStatusResponse,
)

router = APIRouter()


@router.post(
    "/enroll",
    response_model=SecondFactorEnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a new secret and recovery codes",
)
async def enroll(
    payload: Optional[SecondFactorEnrollRequest] = None,
    current_account: AccountDomain = Depends(get_current_account),
    service: SecondFactorService = Depends(get_second_factor_service),
):
    current_code = payload.current_code if payload is not None else None
    enrollment = await service.enroll(current_account.id, current_code)
    return SecondFactorEnrollmentResponse(
        secret=enrollment.secret,
        provisioning_uri=enrollment.provisioning_uri,
        recovery_codes=list(enrollment.recovery_codes),
    )


@router.post("/activate", response_model=SecondFactorStatusResponse, summary="Confirm enrollment with a code")
async def activate(
    payload: SecondFactorActivateRequest,
    current_account: AccountDomain = Depends(get_current_account),
    service: SecondFactorService = Depends(get_second_factor_service),
):
    await service.activate(current_account.id, payload.code)
    return SecondFactorStatusResponse(
        mfa_enabled=True,
        remaining_recovery_codes=await service.remaining_recovery_codes(current_account.id),
    )


@router.get("/status", response_model=SecondFactorStatusResponse)
async def second_factor_status(
    current_account: AccountDomain = Depends(get_current_account),
    service: SecondFactorService = Depends(get_second_factor_service),
):
    return SecondFactorStatusResponse(
        mfa_enabled=current_account.mfa_enabled,
        remaining_recovery_codes=await service.remaining_recovery_codes(current_account.id),
    )
