"""Administrative endpoints: accounts, second-factor resets and the blind-count flag."""
import logging

from fastapi import APIRouter, Depends, status

from cashdesk.core.security import get_current_admin, get_current_actor
from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore
from cashdesk.interfaces.http.deps import get_account_service, get_config_store, get_second_factor_service
from cashdesk.modules.accounts import (
    UNSET,
    Account as AccountDomain,
    AccountCreateInput,
    AccountService,
    AccountUpdateInput,
    Actor,
    parse_role,
)
from cashdesk.modules.second_factor import SecondFactorService
from cashdesk.modules.system_settings import BLIND_COUNT_FLAG
from cashdesk.schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BlindCountFlagRequest,
    BlindCountFlagResponse,
    SecondFactorStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _account_response(account: AccountDomain) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        username=account.username,
        role=account.role.value,
        is_active=account.is_active,
        mfa_enabled=account.mfa_enabled,
        full_name=account.full_name,
        email=account.email,
        created_at=account.created_at,
        last_login_at=account.last_login_at,
    )


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    _admin: Actor = Depends(get_current_admin),
    account_service: AccountService = Depends(get_account_service),
):
    return [_account_response(account) for account in await account_service.list_accounts()]


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreate,
    _admin: Actor = Depends(get_current_admin),
    account_service: AccountService = Depends(get_account_service),
):
    account = await account_service.create_account(
        AccountCreateInput(
            username=payload.username,
            password=payload.password,
            role=parse_role(payload.role),
            full_name=payload.full_name,
            email=payload.email,
            is_active=payload.is_active,
        )
    )
    return _account_response(account)


@router.patch("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    payload: AccountUpdate,
    _admin: Actor = Depends(get_current_admin),
    account_service: AccountService = Depends(get_account_service),
):
    provided = payload.model_dump(exclude_unset=True)
    account = await account_service.update_account(
        account_id,
        AccountUpdateInput(
            full_name=provided.get("full_name", UNSET),
            email=provided.get("email", UNSET),
            is_active=provided.get("is_active", UNSET),
            role=provided.get("role", UNSET),
            password=provided.get("password", UNSET),
        ),
    )
    return _account_response(account)


@router.delete("/accounts/{account_id}/second-factor", response_model=SecondFactorStatusResponse)
async def reset_second_factor(
    account_id: str,
    admin: Actor = Depends(get_current_admin),
    service: SecondFactorService = Depends(get_second_factor_service),
):
    await service.reset(account_id)
    logger.info("Second factor of account %s reset by %s", account_id, admin.account_id)
    return SecondFactorStatusResponse(mfa_enabled=False, remaining_recovery_codes=0)


@router.get("/settings/blind-count", response_model=BlindCountFlagResponse)
async def get_blind_count(
    _actor: Actor = Depends(get_current_actor),
    store: SqlConfigStore = Depends(get_config_store),
):
    return BlindCountFlagResponse(enabled=await store.get_flag(BLIND_COUNT_FLAG))


@router.put("/settings/blind-count", response_model=BlindCountFlagResponse)
async def set_blind_count(
    payload: BlindCountFlagRequest,
    admin: Actor = Depends(get_current_admin),
    store: SqlConfigStore = Depends(get_config_store),
):
    await store.set_flag(BLIND_COUNT_FLAG, payload.enabled)
    logger.info("Blind count %s by %s", "enabled" if payload.enabled else "disabled", admin.account_id)
    return BlindCountFlagResponse(enabled=payload.enabled)
