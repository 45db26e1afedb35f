"""Daily aggregation and locking of a business day."""

from .exceptions import AlreadyFinalizedError, NoApprovedSessionsError, PendingSessionsError
from .models import DailyFinalization, DayOverview, FinalizationResult
from .repository import FinalizationRepository
from .service import FinalizationService

__all__ = [
    "AlreadyFinalizedError",
    "DailyFinalization",
    "DayOverview",
    "FinalizationRepository",
    "FinalizationResult",
    "FinalizationService",
    "NoApprovedSessionsError",
    "PendingSessionsError",
]
