"""Cash session endpoints: operator drawer and supervisor review."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status

from cashdesk.core.security import get_current_actor
from cashdesk.interfaces.http.deps import get_cash_session_service
from cashdesk.modules.accounts import Actor
from cashdesk.modules.cash_sessions import CashSessionService
from cashdesk.schemas import (
    CashSessionResponse,
    CloseSessionRequest,
    OpenSessionRequest,
    PaymentEntryRequest,
    PaymentEntryResponse,
    ReconcileRequest,
    ReconciliationResponse,
    ReviewSheetResponse,
    SessionDetailResponse,
)

router = APIRouter()


@router.post("", response_model=CashSessionResponse, status_code=status.HTTP_201_CREATED, summary="Open a cash session")
async def open_session(
    payload: OpenSessionRequest,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    session = await service.open_session(
        actor,
        payload.business_date,
        payload.opening_balance,
        payload.second_factor_code,
    )
    return CashSessionResponse.model_validate(session)


@router.get("/pending-review", response_model=list[CashSessionResponse], summary="Sessions waiting for review")
async def list_pending_review(
    business_date: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    sessions = await service.list_pending_review(actor, business_date)
    return [CashSessionResponse.model_validate(session) for session in sessions]


@router.get("/{session_id}", response_model=SessionDetailResponse)
async def get_session(
    session_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    return SessionDetailResponse.model_validate(await service.get_session(actor, session_id))


@router.get("/{session_id}/entries", response_model=list[PaymentEntryResponse], summary="Entries in fill order")
async def list_entries(
    session_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    entries = await service.list_entries(actor, session_id)
    return [PaymentEntryResponse.model_validate(entry) for entry in entries]


@router.put(
    "/{session_id}/entries/{payment_method_code}",
    response_model=PaymentEntryResponse,
    summary="Record or replace the amount of one payment method",
)
async def record_payment_entry(
    session_id: str,
    payment_method_code: str,
    payload: PaymentEntryRequest,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    entry = await service.record_payment_entry(actor, session_id, payment_method_code, payload.amount)
    return PaymentEntryResponse.model_validate(entry)


@router.delete(
    "/{session_id}/entries/{payment_method_code}",
    response_model=dict[str, bool],
    summary="Remove the entry of one payment method",
)
async def remove_payment_entry(
    session_id: str,
    payment_method_code: str,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
) -> dict[str, bool]:
    await service.remove_payment_entry(actor, session_id, payment_method_code)
    return {"success": True}


@router.post("/{session_id}/close", response_model=CashSessionResponse, summary="Close the drawer for review")
async def close_session(
    session_id: str,
    payload: CloseSessionRequest,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    session = await service.close_session(actor, session_id, payload.second_factor_code)
    return CashSessionResponse.model_validate(session)


@router.get("/{session_id}/review-sheet", response_model=ReviewSheetResponse)
async def review_sheet(
    session_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    return ReviewSheetResponse.model_validate(await service.review_sheet(actor, session_id))


@router.post("/{session_id}/reconcile", response_model=ReconciliationResponse, summary="Approve or reject a session")
async def reconcile_session(
    session_id: str,
    payload: ReconcileRequest,
    actor: Actor = Depends(get_current_actor),
    service: CashSessionService = Depends(get_cash_session_service),
):
    result = await service.reconcile_session(
        actor,
        session_id,
        approved=payload.approved,
        second_factor_code=payload.second_factor_code,
        counted_cash_amount=payload.counted_cash_amount,
        rejection_reason=payload.rejection_reason,
    )
    return ReconciliationResponse.model_validate(result)
