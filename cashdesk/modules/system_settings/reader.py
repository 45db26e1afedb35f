"""Read access to configuration flags.

Flags are toggled by administrators at any time. Readers always go to the
store; nothing is cached between calls.
"""

from __future__ import annotations

from typing import Protocol

BLIND_COUNT_FLAG = "blind-count-enabled"

_TRUTHY = frozenset({"true", "1", "yes", "on"})


def parse_flag(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class ConfigReader(Protocol):
    async def get_flag(self, name: str) -> bool:
        ...
