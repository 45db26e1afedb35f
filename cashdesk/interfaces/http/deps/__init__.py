"""Reusable FastAPI dependencies."""

from .account import get_account_repository, get_account_service
from .database import get_db_session
from .services import (
    get_cash_session_service,
    get_config_store,
    get_finalization_service,
    get_payment_method_catalog,
    get_second_factor_service,
)

__all__ = [
    "get_account_repository",
    "get_account_service",
    "get_cash_session_service",
    "get_config_store",
    "get_db_session",
    "get_finalization_service",
    "get_payment_method_catalog",
    "get_second_factor_service",
]
