"""Final conference of a business day."""
from datetime import date

from fastapi import APIRouter, Depends, status

from cashdesk.core.security import get_current_actor
from cashdesk.interfaces.http.deps import get_finalization_service
from cashdesk.modules.accounts import Actor
from cashdesk.modules.finalization import FinalizationService
from cashdesk.schemas import DayOverviewResponse, FinalizationResponse, FinalizeDayRequest

router = APIRouter()


@router.post("", response_model=FinalizationResponse, status_code=status.HTTP_201_CREATED, summary="Finalize a day")
async def finalize_day(
    payload: FinalizeDayRequest,
    actor: Actor = Depends(get_current_actor),
    service: FinalizationService = Depends(get_finalization_service),
):
    result = await service.finalize_day(actor, payload.business_date, payload.second_factor_code)
    return FinalizationResponse.model_validate(result)


@router.get("/{business_date}", response_model=DayOverviewResponse, summary="Approved sessions and totals of a day")
async def day_overview(
    business_date: date,
    actor: Actor = Depends(get_current_actor),
    service: FinalizationService = Depends(get_finalization_service),
):
    return DayOverviewResponse.model_validate(await service.day_overview(actor, business_date))
