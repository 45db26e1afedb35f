"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .cash_session_repository import SqlCashSessionRepository
from .finalization_repository import SqlFinalizationRepository
from .payment_method_repository import SqlPaymentMethodCatalog
from .second_factor_repository import SqlSecondFactorRepository
from .system_settings_repository import SqlConfigStore

__all__ = [
    "SqlAccountRepository",
    "SqlCashSessionRepository",
    "SqlConfigStore",
    "SqlFinalizationRepository",
    "SqlPaymentMethodCatalog",
    "SqlSecondFactorRepository",
]
