"""
Seed a fresh database: administrator account, payment-method catalog and
the blind-count flag. Safe to run more than once.
"""
import asyncio
import os

from cashdesk.core.config import get_settings
from cashdesk.infrastructure.database import init_db, session_scope
from cashdesk.infrastructure.database.repositories.payment_method_repository import SqlPaymentMethodCatalog
from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore
from cashdesk.modules.accounts import AccountCreateInput, AccountService, Role
from cashdesk.modules.payment_methods import PaymentMethod
from cashdesk.modules.system_settings import BLIND_COUNT_FLAG

DEFAULT_PAYMENT_METHODS = (
    PaymentMethod(code="dinheiro", name="Dinheiro", is_cash=True, is_external_system=False, display_order=1),
    PaymentMethod(code="pix", name="PIX", is_cash=False, is_external_system=False, display_order=2),
    PaymentMethod(code="debito", name="Cartão de Débito", is_cash=False, is_external_system=False, display_order=3),
    PaymentMethod(code="credito", name="Cartão de Crédito", is_cash=False, is_external_system=False, display_order=4),
    PaymentMethod(code="mensalista", name="Mensalista", is_cash=False, is_external_system=False, display_order=5),
    PaymentMethod(code="cheque", name="Cheque", is_cash=False, is_external_system=False, display_order=6),
    PaymentMethod(code="outros", name="Outros", is_cash=False, is_external_system=False, display_order=7),
    # Till system figure, always listed last.
    PaymentMethod(code="sistema_w6", name="Sistema W6", is_cash=False, is_external_system=True, display_order=99),
)


async def seed() -> None:
    await init_db()

    async with session_scope() as db:
        catalog = SqlPaymentMethodCatalog(db)
        for method in DEFAULT_PAYMENT_METHODS:
            await catalog.upsert(method)

        store = SqlConfigStore(db)
        if await store.get_value(BLIND_COUNT_FLAG) is None:
            await store.set_flag(BLIND_COUNT_FLAG, True)

        service = AccountService.with_session(db)
        if await service.get_by_username("admin") is None:
            password = os.environ.get("CASHDESK_ADMIN_PASSWORD", "Admin@123456")
            await service.create_account(
                AccountCreateInput(
                    username="admin",
                    password=password,
                    role=Role.ADMIN,
                    full_name="Administrador do Sistema",
                    email="admin@cartoriokoerner.com.br",
                )
            )
            print("Administrator account created: admin")
            print("Change the password and enroll a second factor after the first login.")
        else:
            print("Administrator account already exists")

    print(f"Seeded {len(DEFAULT_PAYMENT_METHODS)} payment methods into {get_settings().database_url}")


if __name__ == "__main__":
    asyncio.run(seed())
