"""Final conference: validate and lock a business day."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import Settings, get_settings
from cashdesk.core.exceptions import ForbiddenError
from cashdesk.core.money import ZERO, quantize
from cashdesk.modules.accounts.models import Actor, Role
from cashdesk.modules.cash_sessions.exceptions import ConcurrentSessionUpdateError
from cashdesk.modules.cash_sessions.models import SessionState, SessionSummary
from cashdesk.modules.cash_sessions.repository import CashSessionRepository
from cashdesk.modules.payment_methods import PaymentMethodCatalog
from cashdesk.modules.reconciliation import ReconciliationEngine
from cashdesk.modules.second_factor.service import SecondFactorService

from .exceptions import AlreadyFinalizedError, NoApprovedSessionsError, PendingSessionsError
from .models import DayOverview, FinalizationResult
from .repository import FinalizationRepository

logger = logging.getLogger(__name__)

CONFERENCE_ROLES = (Role.CONFERENCE_SUPERVISOR, Role.ADMIN)
PENDING_STATES = frozenset({SessionState.OPEN, SessionState.CLOSED_PENDING_REVIEW})


class FinalizationService:
    def __init__(
        self,
        sessions: CashSessionRepository,
        finalizations: FinalizationRepository,
        catalog: PaymentMethodCatalog,
        second_factor: SecondFactorService,
        engine: ReconciliationEngine,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sessions = sessions
        self._finalizations = finalizations
        self._catalog = catalog
        self._second_factor = second_factor
        self._engine = engine
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def with_session(cls, session: AsyncSession, settings: Settings | None = None) -> "FinalizationService":
        from cashdesk.infrastructure.database.repositories.cash_session_repository import SqlCashSessionRepository
        from cashdesk.infrastructure.database.repositories.finalization_repository import SqlFinalizationRepository
        from cashdesk.infrastructure.database.repositories.payment_method_repository import SqlPaymentMethodCatalog
        from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore
        from cashdesk.modules.system_settings import BLIND_COUNT_FLAG

        settings = settings or get_settings()
        config = SqlConfigStore(session, defaults={BLIND_COUNT_FLAG: settings.reconciliation.blind_count_default})
        return cls(
            SqlCashSessionRepository(session),
            SqlFinalizationRepository(session),
            SqlPaymentMethodCatalog(session),
            SecondFactorService.with_session(session, settings),
            ReconciliationEngine(config),
        )

    async def finalize_day(
        self,
        actor: Actor,
        business_date: date,
        second_factor_code: Optional[str],
    ) -> FinalizationResult:
        """Aggregate every approved session of the date and lock them.

        The finalization row and the session transitions share the caller's
        transaction; any failure below leaves the day untouched.
        """
        if not actor.has_role(*CONFERENCE_ROLES):
            raise ForbiddenError("Only conference supervisors can finalize a business day")
        await self._second_factor.require(actor.account_id, second_factor_code)

        if await self._finalizations.get_by_date(business_date) is not None:
            raise AlreadyFinalizedError(business_date=business_date.isoformat())
        pending = await self._sessions.list_by_state(PENDING_STATES, business_date=business_date)
        if pending:
            raise PendingSessionsError(business_date=business_date.isoformat(), pending=len(pending))

        summaries = await self._approved_summaries(business_date)
        if not summaries:
            raise NoApprovedSessionsError(business_date=business_date.isoformat())

        total_declared = quantize(sum((item.reconciliation.declared_total for item in summaries), ZERO))
        total_reconciled = quantize(sum((item.reconciliation.reconciled_total for item in summaries), ZERO))
        finalization = await self._finalizations.create(
            business_date=business_date,
            total_declared=total_declared,
            total_reconciled=total_reconciled,
            finalized_by=actor.account_id,
            finalized_at=self._clock(),
        )

        session_ids = tuple(item.session.id for item in summaries)
        changed = await self._sessions.finalize_sessions(session_ids, business_date)
        if changed != len(session_ids):
            logger.warning(
                "Finalization of %s aborted: %d of %d sessions could be locked",
                business_date,
                changed,
                len(session_ids),
            )
            raise ConcurrentSessionUpdateError(business_date=business_date.isoformat())

        logger.info(
            "Business date %s finalized by %s: %d sessions, declared %s, reconciled %s",
            business_date,
            actor.account_id,
            len(session_ids),
            total_declared,
            total_reconciled,
        )
        return FinalizationResult(finalization=finalization, session_ids=session_ids)

    async def day_overview(self, actor: Actor, business_date: date) -> DayOverview:
        if not actor.has_role(*CONFERENCE_ROLES):
            raise ForbiddenError("Only conference supervisors can view the day overview")
        finalization = await self._finalizations.get_by_date(business_date)
        states = {SessionState.FINALIZED} if finalization is not None else {SessionState.APPROVED}
        pending = await self._sessions.list_by_state(PENDING_STATES, business_date=business_date)
        return DayOverview(
            business_date=business_date,
            blind_count=await self._engine.is_blind_count_enabled(),
            sessions=await self._summaries(business_date, states),
            pending_sessions=len(pending),
            finalization=finalization,
        )

    async def _approved_summaries(self, business_date: date) -> tuple[SessionSummary, ...]:
        return await self._summaries(business_date, {SessionState.APPROVED})

    async def _summaries(self, business_date: date, states: set[SessionState]) -> tuple[SessionSummary, ...]:
        sessions = await self._sessions.list_by_state(states, business_date=business_date)
        if not sessions:
            return ()
        cash_codes = await self._catalog.cash_method_codes()
        summaries = []
        for session in sessions:
            entries = tuple(await self._sessions.list_entries(session.id))
            count = await self._sessions.get_supervisor_count(session.id)
            summaries.append(
                SessionSummary(
                    session=session,
                    entries=entries,
                    supervisor_count=count,
                    reconciliation=self._engine.summarize(entries, cash_codes, count),
                )
            )
        return tuple(summaries)
