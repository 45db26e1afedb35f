import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ["SECURITY__BCRYPT_ROUNDS"] = "4"
os.environ["SECURITY__MFA_ENCRYPTION_KEY"] = "test-master-key-for-second-factor"
os.environ["SECURITY__SECRET_KEY"] = "test-jwt-secret-key"
os.environ["SECOND_FACTOR__RECOVERY_CODE_COUNT"] = "3"

from dataclasses import dataclass  # noqa: E402
from datetime import date  # noqa: E402

import pyotp  # noqa: E402
import pytest  # noqa: E402

from cashdesk.core.config import get_settings  # noqa: E402
from cashdesk.infrastructure.database import build_engine, create_session_factory, init_db  # noqa: E402
from cashdesk.infrastructure.database.repositories.payment_method_repository import (  # noqa: E402
    SqlPaymentMethodCatalog,
)
from cashdesk.infrastructure.database.repositories.system_settings_repository import SqlConfigStore  # noqa: E402
from cashdesk.modules.accounts import AccountCreateInput, AccountService, Actor, Role  # noqa: E402
from cashdesk.modules.cash_sessions import CashSessionService  # noqa: E402
from cashdesk.modules.finalization import FinalizationService  # noqa: E402
from cashdesk.modules.payment_methods import PaymentMethod  # noqa: E402
from cashdesk.modules.second_factor import SecondFactorService  # noqa: E402
from cashdesk.modules.system_settings import BLIND_COUNT_FLAG  # noqa: E402

get_settings.cache_clear()

BUSINESS_DATE = date(2026, 10, 16)

CATALOG = (
    PaymentMethod(code="dinheiro", name="Dinheiro", is_cash=True, is_external_system=False, display_order=1),
    PaymentMethod(code="pix", name="PIX", is_cash=False, is_external_system=False, display_order=2),
    PaymentMethod(code="debito", name="Cartão de Débito", is_cash=False, is_external_system=False, display_order=3),
    PaymentMethod(code="sistema_w6", name="Sistema W6", is_cash=False, is_external_system=True, display_order=99),
    PaymentMethod(
        code="cheque",
        name="Cheque",
        is_cash=False,
        is_external_system=False,
        display_order=6,
        is_active=False,
    ),
)


@dataclass
class EnrolledUser:
    actor: Actor
    username: str
    password: str
    secret: str
    recovery_codes: tuple[str, ...]

    @property
    def account_id(self) -> str:
        return self.actor.account_id

    def code(self) -> str:
        return pyotp.TOTP(self.secret).now()


class Desk:
    """Runs every call in its own transaction, the way a request would."""

    def __init__(self, factory, settings):
        self.factory = factory
        self.settings = settings

    async def _run(self, service_cls, method, *args, **kwargs):
        async with self.factory() as db:
            async with db.begin():
                service = service_cls.with_session(db, self.settings)
                return await getattr(service, method)(*args, **kwargs)

    async def sessions(self, method, *args, **kwargs):
        return await self._run(CashSessionService, method, *args, **kwargs)

    async def finalization(self, method, *args, **kwargs):
        return await self._run(FinalizationService, method, *args, **kwargs)

    async def second_factor(self, method, *args, **kwargs):
        return await self._run(SecondFactorService, method, *args, **kwargs)

    async def set_blind_count(self, enabled: bool) -> None:
        async with self.factory() as db:
            async with db.begin():
                await SqlConfigStore(db).set_flag(BLIND_COUNT_FLAG, enabled)


@pytest.fixture
def settings():
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cashdesk-test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    factory = create_session_factory(engine)
    async with factory() as db:
        async with db.begin():
            catalog = SqlPaymentMethodCatalog(db)
            for method in CATALOG:
                await catalog.upsert(method)
            await SqlConfigStore(db).set_flag(BLIND_COUNT_FLAG, True)
    return factory


@pytest.fixture
def desk(session_factory, settings):
    return Desk(session_factory, settings)


async def create_user(factory, settings, username: str, role: Role, *, enroll: bool = True) -> EnrolledUser:
    password = f"{username}-password"
    async with factory() as db:
        async with db.begin():
            account = await AccountService.with_session(db).create_account(
                AccountCreateInput(username=username, password=password, role=role)
            )
    if not enroll:
        return EnrolledUser(account.as_actor(), username, password, "", ())

    async with factory() as db:
        async with db.begin():
            enrollment = await SecondFactorService.with_session(db, settings).enroll(account.id)
    async with factory() as db:
        async with db.begin():
            code = pyotp.TOTP(enrollment.secret).now()
            await SecondFactorService.with_session(db, settings).activate(account.id, code)
    return EnrolledUser(account.as_actor(), username, password, enrollment.secret, enrollment.recovery_codes)


@pytest.fixture
async def operator(session_factory, settings):
    return await create_user(session_factory, settings, "operador", Role.OPERATOR)


@pytest.fixture
async def other_operator(session_factory, settings):
    return await create_user(session_factory, settings, "operador2", Role.OPERATOR)


@pytest.fixture
async def cash_supervisor(session_factory, settings):
    return await create_user(session_factory, settings, "supervisor.caixa", Role.CASH_SUPERVISOR)


@pytest.fixture
async def conference_supervisor(session_factory, settings):
    return await create_user(session_factory, settings, "supervisor.conferencia", Role.CONFERENCE_SUPERVISOR)


@pytest.fixture
async def admin(session_factory, settings):
    return await create_user(session_factory, settings, "admin", Role.ADMIN)


@pytest.fixture
def make_user(session_factory, settings):
    async def factory(username: str, role: Role, *, enroll: bool = True) -> EnrolledUser:
        return await create_user(session_factory, settings, username, role, enroll=enroll)

    return factory
