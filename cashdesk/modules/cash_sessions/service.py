"""Cash session lifecycle: open, fill, close and reconcile."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.core.config import Settings, get_settings
from cashdesk.core.money import ZERO, MoneyInput, quantize, to_money
from cashdesk.modules.accounts.models import Actor, Role
from cashdesk.modules.payment_methods import PaymentMethodCatalog, UnknownPaymentMethodError
from cashdesk.modules.reconciliation import ReconciliationEngine, compute_declared_total
from cashdesk.modules.second_factor.service import SecondFactorService

from .exceptions import (
    BusinessDateFinalizedError,
    ConcurrentSessionUpdateError,
    DuplicateSessionError,
    EntryNotFoundError,
    ForbiddenError,
    MissingRejectionReasonError,
    NoEntriesError,
    SessionNotFoundError,
    SessionNotOpenError,
    SessionNotPendingReviewError,
)
from .models import (
    NON_TERMINAL_STATES,
    CashSession,
    PaymentEntry,
    ReconciliationResult,
    ReviewSheet,
    SessionState,
    SessionSummary,
    SupervisorCount,
)
from .repository import CashSessionRepository

logger = logging.getLogger(__name__)

MAX_REJECTION_REASON_LENGTH = 500

OPERATOR_ROLES = (Role.OPERATOR,)
REVIEWER_ROLES = (Role.CASH_SUPERVISOR, Role.ADMIN)
OVERSIGHT_ROLES = (Role.CASH_SUPERVISOR, Role.CONFERENCE_SUPERVISOR, Role.ADMIN)


class FinalizedDates(Protocol):
    async def is_finalized(self, business_date: date) -> bool:
        ...


class CashSessionService:
    def __init__(
        self,
        repository: CashSessionRepository,
        catalog: PaymentMethodCatalog,
        second_factor: SecondFactorService,
        engine: ReconciliationEngine,
        *,
        finalized_dates: FinalizedDates | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._second_factor = second_factor
        self._engine = engine
        self._finalized_dates = finalized_dates
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def with_session(cls, session: AsyncSession, settings: Settings | None = None) -> "CashSessionService":
        from cashdesk.infrastructure.database.repositories.cash_session_repository import SqlCashSessionRepository
        from cashdesk.infrastructure.database.repositories.finalization_repository import SqlFinalizationRepository
        from cashdesk.infrastructure.database.repositories.payment_method_repository import SqlPaymentMethodCatalog
        from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore
        from cashdesk.modules.system_settings import BLIND_COUNT_FLAG

        settings = settings or get_settings()
        config = SqlConfigStore(session, defaults={BLIND_COUNT_FLAG: settings.reconciliation.blind_count_default})
        return cls(
            SqlCashSessionRepository(session),
            SqlPaymentMethodCatalog(session),
            SecondFactorService.with_session(session, settings),
            ReconciliationEngine(config),
            finalized_dates=SqlFinalizationRepository(session),
        )

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    async def open_session(
        self,
        actor: Actor,
        business_date: date,
        opening_balance: MoneyInput,
        second_factor_code: Optional[str],
    ) -> CashSession:
        if not actor.has_role(*OPERATOR_ROLES):
            raise ForbiddenError("Only cash operators can open a cash session")
        balance = to_money(opening_balance, field="opening_balance")
        await self._second_factor.require(actor.account_id, second_factor_code)

        if await self._repository.find_non_terminal(actor.account_id, business_date) is not None:
            raise DuplicateSessionError(business_date=business_date.isoformat())
        still_open = await self._repository.find_open(actor.account_id)
        if still_open is not None:
            raise DuplicateSessionError(
                "The operator still has an open cash session on another date",
                business_date=still_open.business_date.isoformat(),
            )
        if self._finalized_dates is not None and await self._finalized_dates.is_finalized(business_date):
            raise BusinessDateFinalizedError(business_date=business_date.isoformat())

        session = await self._repository.create(
            operator_id=actor.account_id,
            business_date=business_date,
            opening_balance=balance,
            opened_at=self._clock(),
        )
        logger.info(
            "Cash session %s opened by %s for %s with balance %s",
            session.id,
            actor.account_id,
            business_date,
            balance,
        )
        return session

    async def record_payment_entry(
        self,
        actor: Actor,
        session_id: str,
        payment_method_code: str,
        amount: MoneyInput,
    ) -> PaymentEntry:
        session = await self._require_session(session_id)
        if session.opened_by != actor.account_id:
            raise ForbiddenError("Only the operator who opened the session can record entries")
        value = to_money(amount, field="amount")
        if session.state is not SessionState.OPEN:
            raise SessionNotOpenError(session_id=session_id, state=session.state.value)

        method = await self._catalog.get(payment_method_code)
        if method is None or not method.is_active:
            raise UnknownPaymentMethodError(payment_method_code=payment_method_code)

        if not await self._repository.touch(session_id, expected_state=SessionState.OPEN):
            raise SessionNotOpenError(session_id=session_id)
        entry = await self._repository.upsert_entry(
            session_id,
            payment_method_code=method.code,
            amount=value,
            recorded_at=self._clock(),
        )
        logger.info("Session %s entry %s set to %s by %s", session_id, method.code, value, actor.account_id)
        return entry

    async def remove_payment_entry(self, actor: Actor, session_id: str, payment_method_code: str) -> None:
        session = await self._require_session(session_id)
        if session.opened_by != actor.account_id:
            raise ForbiddenError("Only the operator who opened the session can remove entries")
        if session.state is not SessionState.OPEN:
            raise SessionNotOpenError(session_id=session_id, state=session.state.value)
        entries = await self._repository.list_entries(session_id)
        if not any(entry.payment_method_code == payment_method_code for entry in entries):
            raise EntryNotFoundError(session_id=session_id, payment_method_code=payment_method_code)

        if not await self._repository.touch(session_id, expected_state=SessionState.OPEN):
            raise SessionNotOpenError(session_id=session_id)
        await self._repository.delete_entry(session_id, payment_method_code)
        logger.info("Session %s entry %s removed by %s", session_id, payment_method_code, actor.account_id)

    async def close_session(
        self,
        actor: Actor,
        session_id: str,
        second_factor_code: Optional[str],
    ) -> CashSession:
        session = await self._require_session(session_id)
        if session.opened_by != actor.account_id:
            raise ForbiddenError("Only the operator who opened the session can close it")
        if session.state is not SessionState.OPEN:
            raise SessionNotOpenError(session_id=session_id, state=session.state.value)
        entries = await self._repository.list_entries(session_id)
        if not entries:
            raise NoEntriesError(session_id=session_id)
        await self._second_factor.require(actor.account_id, second_factor_code)

        external_codes = await self._catalog.external_system_codes()
        external = [entry.amount for entry in entries if entry.payment_method_code in external_codes]
        declared_total = compute_declared_total(entries)
        system_amount = quantize(sum(external, ZERO)) if external else None

        closed = await self._repository.transition(
            session_id,
            expected_state=SessionState.OPEN,
            expected_version=session.version,
            new_state=SessionState.CLOSED_PENDING_REVIEW,
            declared_total=declared_total,
            system_integration_amount=system_amount,
            closed_by=actor.account_id,
            closed_at=self._clock(),
        )
        if closed is None:
            raise await self._transition_conflict(session_id, SessionState.OPEN)
        logger.info(
            "Cash session %s closed by %s with declared total %s (%d entries)",
            session_id,
            actor.account_id,
            declared_total,
            len(entries),
        )
        return closed

    async def reconcile_session(
        self,
        actor: Actor,
        session_id: str,
        *,
        approved: bool,
        second_factor_code: Optional[str],
        counted_cash_amount: MoneyInput | None = None,
        rejection_reason: Optional[str] = None,
    ) -> ReconciliationResult:
        if not actor.has_role(*REVIEWER_ROLES):
            raise ForbiddenError("Only cash supervisors can reconcile a cash session")
        reason = None
        if not approved:
            reason = (rejection_reason or "").strip()
            if not reason:
                raise MissingRejectionReasonError(session_id=session_id)
            if len(reason) > MAX_REJECTION_REASON_LENGTH:
                raise MissingRejectionReasonError(
                    f"The rejection reason must be at most {MAX_REJECTION_REASON_LENGTH} characters",
                    session_id=session_id,
                )
        await self._second_factor.require(actor.account_id, second_factor_code)

        session = await self._require_session(session_id)
        if session.state is not SessionState.CLOSED_PENDING_REVIEW:
            raise SessionNotPendingReviewError(session_id=session_id, state=session.state.value)

        plan = await self._engine.plan(approved=approved, counted_cash_amount=counted_cash_amount)
        now = self._clock()
        reconciled = await self._repository.transition(
            session_id,
            expected_state=SessionState.CLOSED_PENDING_REVIEW,
            expected_version=session.version,
            new_state=SessionState.APPROVED if approved else SessionState.REJECTED,
            reviewed_by=actor.account_id,
            reviewed_at=now,
            rejection_reason=reason,
        )
        if reconciled is None:
            raise await self._transition_conflict(session_id, SessionState.CLOSED_PENDING_REVIEW)

        if not plan.creates_supervisor_count:
            logger.info(
                "Cash session %s %s by %s (blind count %s)",
                session_id,
                reconciled.state.value,
                actor.account_id,
                "on" if plan.blind_count else "off",
            )
            return ReconciliationResult(session=reconciled, blind_count=plan.blind_count)

        count = await self._repository.add_supervisor_count(
            SupervisorCount(
                session_id=session_id,
                supervisor_id=actor.account_id,
                counted_cash_amount=plan.counted_cash_amount,
                recorded_at=now,
            )
        )
        entries = await self._repository.list_entries(session_id)
        summary = self._engine.summarize(entries, await self._catalog.cash_method_codes(), count)
        logger.info(
            "Cash session %s approved by %s with counted cash %s (declared %s, variance %s)",
            session_id,
            actor.account_id,
            count.counted_cash_amount,
            summary.declared_cash,
            summary.cash_variance,
        )
        return ReconciliationResult(
            session=reconciled,
            blind_count=True,
            supervisor_count=count,
            variance=summary.cash_variance,
        )

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    async def get_session(self, actor: Actor, session_id: str) -> SessionSummary:
        session = await self._require_session(session_id)
        self._ensure_can_view(actor, session)
        entries = tuple(await self._repository.list_entries(session_id))
        count = await self._repository.get_supervisor_count(session_id)
        hidden_codes = await self._blind_codes(actor, session)
        if hidden_codes is not None:
            return SessionSummary(
                session=_without_totals(session),
                entries=tuple(entry for entry in entries if entry.payment_method_code not in hidden_codes),
                supervisor_count=count,
                reconciliation=None,
                hidden_method_codes=tuple(
                    entry.payment_method_code for entry in entries if entry.payment_method_code in hidden_codes
                ),
            )
        cash_codes = await self._catalog.cash_method_codes()
        return SessionSummary(
            session=session,
            entries=entries,
            supervisor_count=count,
            reconciliation=self._engine.summarize(entries, cash_codes, count),
        )

    async def list_entries(self, actor: Actor, session_id: str) -> list[PaymentEntry]:
        session = await self._require_session(session_id)
        self._ensure_can_view(actor, session)
        entries = await self._repository.list_entries(session_id)
        hidden_codes = await self._blind_codes(actor, session)
        if hidden_codes is None:
            return list(entries)
        return [entry for entry in entries if entry.payment_method_code not in hidden_codes]

    async def list_pending_review(self, actor: Actor, business_date: date | None = None) -> list[CashSession]:
        if not actor.has_role(*OVERSIGHT_ROLES):
            raise ForbiddenError("Only supervisors can list sessions waiting for review")
        sessions = await self._repository.list_by_state(
            {SessionState.CLOSED_PENDING_REVIEW}, business_date=business_date
        )
        if await self._engine.is_blind_count_enabled():
            return [_without_totals(session) for session in sessions]
        return list(sessions)

    async def review_sheet(self, actor: Actor, session_id: str) -> ReviewSheet:
        if not actor.has_role(*REVIEWER_ROLES):
            raise ForbiddenError("Only cash supervisors can review a cash session")
        session = await self._require_session(session_id)
        entries = await self._repository.list_entries(session_id)
        blind_count = await self._engine.is_blind_count_enabled()
        hidden: tuple[str, ...] = ()
        if blind_count:
            cash_codes = await self._catalog.cash_method_codes()
            hidden = tuple(entry.payment_method_code for entry in entries if entry.payment_method_code in cash_codes)
            entries = [entry for entry in entries if entry.payment_method_code not in cash_codes]
            session = _without_totals(session)
        return ReviewSheet(
            session=session,
            blind_count=blind_count,
            entries=tuple(entries),
            hidden_method_codes=hidden,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    async def _blind_codes(self, actor: Actor, session: CashSession) -> frozenset[str] | None:
        """Cash codes to withhold from ``actor``, or ``None`` when nothing is withheld.

        Only the session's own operator sees the cash figure before the
        session has been reviewed while blind count is on.
        """
        if session.opened_by == actor.account_id or session.state not in NON_TERMINAL_STATES:
            return None
        if not await self._engine.is_blind_count_enabled():
            return None
        return frozenset(await self._catalog.cash_method_codes())

    async def _require_session(self, session_id: str) -> CashSession:
        session = await self._repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id=session_id)
        return session

    async def _transition_conflict(self, session_id: str, expected: SessionState) -> Exception:
        current = await self._repository.get(session_id)
        if current is not None and current.state is expected:
            logger.warning("Cash session %s changed concurrently; transition from %s refused", session_id, expected.value)
            return ConcurrentSessionUpdateError(session_id=session_id)
        state = current.state.value if current is not None else None
        if expected is SessionState.OPEN:
            return SessionNotOpenError(session_id=session_id, state=state)
        return SessionNotPendingReviewError(session_id=session_id, state=state)

    @staticmethod
    def _ensure_can_view(actor: Actor, session: CashSession) -> None:
        if session.opened_by == actor.account_id or actor.has_role(*OVERSIGHT_ROLES):
            return
        raise ForbiddenError("You can only view your own cash sessions")


def _without_totals(session: CashSession) -> CashSession:
    return replace(session, declared_total=None, system_integration_amount=None)
