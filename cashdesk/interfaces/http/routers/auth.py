"""Authentication endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from cashdesk.core.security import create_access_token
from cashdesk.interfaces.http.deps import get_account_service
from cashdesk.modules.accounts import AccountService
from cashdesk.schemas import AccountLoginResponse, LoginRequest

router = APIRouter()


@router.post("/login", response_model=AccountLoginResponse, summary="Password login")
async def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountLoginResponse:
    account = await account_service.authenticate(payload.username, payload.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    await account_service.set_last_login(account.id)

    access_token = create_access_token(account.id, account.username, account.role.value)
    return AccountLoginResponse(
        access_token=access_token,
        account_id=account.id,
        username=account.username,
        role=account.role.value,
        mfa_enabled=account.mfa_enabled,
    )
