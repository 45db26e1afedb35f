"""Cash desk service providers bound to the request transaction."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import get_settings
from cashdesk.infrastructure.database.repositories.payment_method_repository import SqlPaymentMethodCatalog
from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore
from cashdesk.modules.cash_sessions import CashSessionService
from cashdesk.modules.finalization import FinalizationService
from cashdesk.modules.second_factor import SecondFactorService
from cashdesk.modules.system_settings import BLIND_COUNT_FLAG

from .database import get_db_session


def get_cash_session_service(db: AsyncSession = Depends(get_db_session)) -> CashSessionService:
    return CashSessionService.with_session(db, get_settings())


def get_finalization_service(db: AsyncSession = Depends(get_db_session)) -> FinalizationService:
    return FinalizationService.with_session(db, get_settings())


def get_second_factor_service(db: AsyncSession = Depends(get_db_session)) -> SecondFactorService:
    return SecondFactorService.with_session(db, get_settings())


def get_payment_method_catalog(db: AsyncSession = Depends(get_db_session)) -> SqlPaymentMethodCatalog:
    return SqlPaymentMethodCatalog(db)


def get_config_store(db: AsyncSession = Depends(get_db_session)) -> SqlConfigStore:
    defaults = {BLIND_COUNT_FLAG: get_settings().reconciliation.blind_count_default}
    return SqlConfigStore(db, defaults=defaults)


__all__ = [
    "get_cash_session_service",
    "get_config_store",
    "get_finalization_service",
    "get_payment_method_catalog",
    "get_second_factor_service",
]
