"""SQLAlchemy implementation of the cash-session repository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Collection, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.db.models import CashSession as CashSessionModel
from cashdesk.db.models import PaymentEntry as PaymentEntryModel
from cashdesk.db.models import SupervisorCount as SupervisorCountModel
from cashdesk.modules.cash_sessions.exceptions import DuplicateSessionError
from cashdesk.modules.cash_sessions.models import (
    NON_TERMINAL_STATES,
    CashSession,
    PaymentEntry,
    SessionState,
    SupervisorCount,
)


class SqlCashSessionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _load(self, session_id: str) -> CashSessionModel | None:
        stmt = (
            select(CashSessionModel)
            .where(CashSessionModel.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, session_id: str) -> CashSession | None:
        model = await self._load(session_id)
        return self._to_domain(model) if model is not None else None

    async def find_non_terminal(self, operator_id: str, business_date: date) -> CashSession | None:
        stmt = select(CashSessionModel).where(
            CashSessionModel.opened_by == operator_id,
            CashSessionModel.business_date == business_date,
            CashSessionModel.state.in_([state.value for state in NON_TERMINAL_STATES]),
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model is not None else None

    async def find_open(self, operator_id: str) -> CashSession | None:
        stmt = (
            select(CashSessionModel)
            .where(
                CashSessionModel.opened_by == operator_id,
                CashSessionModel.state == SessionState.OPEN.value,
            )
            .order_by(CashSessionModel.opened_at.desc())
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model is not None else None

    async def create(
        self,
        *,
        operator_id: str,
        business_date: date,
        opening_balance: Decimal,
        opened_at: datetime,
    ) -> CashSession:
        model = CashSessionModel(
            business_date=business_date,
            opening_balance=opening_balance,
            state=SessionState.OPEN.value,
            version=1,
            opened_by=operator_id,
            opened_at=opened_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(model)
                await self._session.flush()
        except IntegrityError as exc:
            raise DuplicateSessionError(business_date=business_date.isoformat()) from exc
        return self._to_domain(model)

    async def transition(
        self,
        session_id: str,
        *,
        expected_state: SessionState,
        expected_version: int,
        new_state: SessionState,
        **values: Any,
    ) -> CashSession | None:
        stmt = (
            update(CashSessionModel)
            .where(
                CashSessionModel.id == session_id,
                CashSessionModel.state == expected_state.value,
                CashSessionModel.version == expected_version,
            )
            .values(state=new_state.value, version=CashSessionModel.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            return None
        return await self.get(session_id)

    async def touch(self, session_id: str, *, expected_state: SessionState) -> bool:
        stmt = (
            update(CashSessionModel)
            .where(CashSessionModel.id == session_id, CashSessionModel.state == expected_state.value)
            .values(version=CashSessionModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_entries(self, session_id: str) -> Sequence[PaymentEntry]:
        stmt = (
            select(PaymentEntryModel)
            .where(PaymentEntryModel.session_id == session_id)
            .order_by(PaymentEntryModel.fill_order)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._entry_to_domain(model) for model in result.scalars().all()]

    async def upsert_entry(
        self,
        session_id: str,
        *,
        payment_method_code: str,
        amount: Decimal,
        recorded_at: datetime,
    ) -> PaymentEntry:
        stmt = select(PaymentEntryModel).where(
            PaymentEntryModel.session_id == session_id,
            PaymentEntryModel.payment_method_code == payment_method_code,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            last_order = await self._session.scalar(
                select(func.max(PaymentEntryModel.fill_order)).where(PaymentEntryModel.session_id == session_id)
            )
            model = PaymentEntryModel(
                session_id=session_id,
                payment_method_code=payment_method_code,
                amount=amount,
                fill_order=(last_order or 0) + 1,
                recorded_at=recorded_at,
            )
            self._session.add(model)
        else:
            model.amount = amount
            model.recorded_at = recorded_at
        await self._session.flush()
        return self._entry_to_domain(model)

    async def delete_entry(self, session_id: str, payment_method_code: str) -> bool:
        result = await self._session.execute(
            delete(PaymentEntryModel).where(
                PaymentEntryModel.session_id == session_id,
                PaymentEntryModel.payment_method_code == payment_method_code,
            )
        )
        return result.rowcount == 1

    async def add_supervisor_count(self, count: SupervisorCount) -> SupervisorCount:
        self._session.add(
            SupervisorCountModel(
                session_id=count.session_id,
                supervisor_id=count.supervisor_id,
                counted_cash_amount=count.counted_cash_amount,
                recorded_at=count.recorded_at,
            )
        )
        await self._session.flush()
        return count

    async def get_supervisor_count(self, session_id: str) -> SupervisorCount | None:
        model = await self._session.get(SupervisorCountModel, session_id)
        if model is None:
            return None
        return SupervisorCount(
            session_id=model.session_id,
            supervisor_id=model.supervisor_id,
            counted_cash_amount=Decimal(model.counted_cash_amount),
            recorded_at=model.recorded_at,
        )

    async def list_by_state(
        self,
        states: Collection[SessionState],
        *,
        business_date: date | None = None,
    ) -> Sequence[CashSession]:
        stmt = select(CashSessionModel).where(CashSessionModel.state.in_([state.value for state in states]))
        if business_date is not None:
            stmt = stmt.where(CashSessionModel.business_date == business_date)
        stmt = stmt.order_by(CashSessionModel.business_date, CashSessionModel.opened_at).execution_options(
            populate_existing=True
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def finalize_sessions(self, session_ids: Collection[str], business_date: date) -> int:
        if not session_ids:
            return 0
        stmt = (
            update(CashSessionModel)
            .where(
                CashSessionModel.id.in_(list(session_ids)),
                CashSessionModel.business_date == business_date,
                CashSessionModel.state == SessionState.APPROVED.value,
            )
            .values(state=SessionState.FINALIZED.value, version=CashSessionModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    @staticmethod
    def _to_domain(model: CashSessionModel) -> CashSession:
        return CashSession(
            id=model.id,
            business_date=model.business_date,
            opening_balance=Decimal(model.opening_balance),
            state=SessionState(model.state),
            opened_by=model.opened_by,
            opened_at=model.opened_at,
            version=model.version,
            declared_total=Decimal(model.declared_total) if model.declared_total is not None else None,
            system_integration_amount=(
                Decimal(model.system_integration_amount) if model.system_integration_amount is not None else None
            ),
            closed_by=model.closed_by,
            closed_at=model.closed_at,
            reviewed_by=model.reviewed_by,
            reviewed_at=model.reviewed_at,
            rejection_reason=model.rejection_reason,
        )

    @staticmethod
    def _entry_to_domain(model: PaymentEntryModel) -> PaymentEntry:
        return PaymentEntry(
            session_id=model.session_id,
            payment_method_code=model.payment_method_code,
            amount=Decimal(model.amount),
            fill_order=model.fill_order,
            recorded_at=model.recorded_at,
        )
