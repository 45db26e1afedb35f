"""Catalog protocol consumed by the cash-session core."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import PaymentMethod


class PaymentMethodCatalog(Protocol):
    async def list_active(self) -> Sequence[PaymentMethod]:
        """Active methods ordered by ``display_order``."""
        ...

    async def get(self, code: str) -> PaymentMethod | None:
        ...

    async def cash_method_codes(self) -> frozenset[str]:
        """Codes flagged as cash, active or not, so historic entries still resolve."""
        ...

    async def external_system_codes(self) -> frozenset[str]:
        ...
