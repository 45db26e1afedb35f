"""SQLAlchemy implementation of the payment-method catalog."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.db.models import PaymentMethod as PaymentMethodModel
from cashdesk.modules.payment_methods.models import PaymentMethod


class SqlPaymentMethodCatalog:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active(self) -> Sequence[PaymentMethod]:
        stmt = (
            select(PaymentMethodModel)
            .where(PaymentMethodModel.is_active.is_(True))
            .order_by(PaymentMethodModel.display_order, PaymentMethodModel.code)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def get(self, code: str) -> PaymentMethod | None:
        model = await self._session.get(PaymentMethodModel, code)
        return self._to_domain(model) if model is not None else None

    async def cash_method_codes(self) -> frozenset[str]:
        result = await self._session.execute(
            select(PaymentMethodModel.code).where(PaymentMethodModel.is_cash.is_(True))
        )
        return frozenset(result.scalars().all())

    async def external_system_codes(self) -> frozenset[str]:
        result = await self._session.execute(
            select(PaymentMethodModel.code).where(PaymentMethodModel.is_external_system.is_(True))
        )
        return frozenset(result.scalars().all())

    async def upsert(self, method: PaymentMethod) -> PaymentMethod:
        model = await self._session.get(PaymentMethodModel, method.code)
        if model is None:
            model = PaymentMethodModel(code=method.code)
            self._session.add(model)
        model.name = method.name
        model.is_cash = method.is_cash
        model.is_external_system = method.is_external_system
        model.display_order = method.display_order
        model.is_active = method.is_active
        await self._session.flush()
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: PaymentMethodModel) -> PaymentMethod:
        return PaymentMethod(
            code=model.code,
            name=model.name,
            is_cash=bool(model.is_cash),
            is_external_system=bool(model.is_external_system),
            display_order=model.display_order,
            is_active=bool(model.is_active),
        )
