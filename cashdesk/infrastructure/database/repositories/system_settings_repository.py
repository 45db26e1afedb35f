"""SQLAlchemy-backed configuration store."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdesk.db.models import SystemSetting
from cashdesk.modules.system_settings.reader import parse_flag


class SqlConfigStore:
    """Implements ``ConfigReader`` and the admin-side writer."""

    def __init__(self, session: AsyncSession, *, defaults: dict[str, bool] | None = None) -> None:
        self._session = session
        self._defaults = defaults or {}

    async def get_value(self, name: str) -> str | None:
        result = await self._session.execute(select(SystemSetting.value).where(SystemSetting.key == name))
        return result.scalar_one_or_none()

    async def get_flag(self, name: str) -> bool:
        return parse_flag(await self.get_value(name), self._defaults.get(name, False))

    async def set_flag(self, name: str, enabled: bool) -> None:
        model = await self._session.get(SystemSetting, name)
        value = "true" if enabled else "false"
        if model is None:
            self._session.add(SystemSetting(key=name, value=value))
        else:
            model.value = value
        await self._session.flush()
