"""Payment-method catalog, read-only."""
from fastapi import APIRouter, Depends

from cashdesk.core.security import get_current_actor
from cashdesk.infrastructure.database.repositories.payment_method_repository import SqlPaymentMethodCatalog
from cashdesk.interfaces.http.deps import get_payment_method_catalog
from cashdesk.modules.accounts import Actor
from cashdesk.schemas import PaymentMethodResponse

router = APIRouter()


@router.get("", response_model=list[PaymentMethodResponse], summary="Active payment methods in display order")
async def list_payment_methods(
    _actor: Actor = Depends(get_current_actor),
    catalog: SqlPaymentMethodCatalog = Depends(get_payment_method_catalog),
):
    return [PaymentMethodResponse.model_validate(method) for method in await catalog.list_active()]
