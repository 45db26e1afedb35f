"""SQLAlchemy implementation of the daily finalization repository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.db.models import DailyFinalization as DailyFinalizationModel
from cashdesk.modules.finalization.exceptions import AlreadyFinalizedError
from cashdesk.modules.finalization.models import DailyFinalization


class SqlFinalizationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_date(self, business_date: date) -> DailyFinalization | None:
        result = await self._session.execute(
            select(DailyFinalizationModel).where(DailyFinalizationModel.business_date == business_date)
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    async def is_finalized(self, business_date: date) -> bool:
        result = await self._session.execute(
            select(DailyFinalizationModel.id).where(DailyFinalizationModel.business_date == business_date)
        )
        return result.first() is not None

    async def create(
        self,
        *,
        business_date: date,
        total_declared: Decimal,
        total_reconciled: Decimal,
        finalized_by: str,
        finalized_at: datetime,
    ) -> DailyFinalization:
        model = DailyFinalizationModel(
            business_date=business_date,
            total_declared=total_declared,
            total_reconciled=total_reconciled,
            finalized_by=finalized_by,
            finalized_at=finalized_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(model)
                await self._session.flush()
        except IntegrityError as exc:
            raise AlreadyFinalizedError(business_date=business_date.isoformat()) from exc
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: DailyFinalizationModel) -> DailyFinalization:
        return DailyFinalization(
            id=model.id,
            business_date=model.business_date,
            total_declared=Decimal(model.total_declared),
            total_reconciled=Decimal(model.total_reconciled),
            finalized_by=model.finalized_by,
            finalized_at=model.finalized_at,
        )
