"""Payment-method catalog entries."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class PaymentMethod:
    code: str
    name: str
    is_cash: bool
    is_external_system: bool
    display_order: int
    is_active: bool = True
