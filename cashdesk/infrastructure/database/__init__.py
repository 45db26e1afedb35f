"""Database infrastructure helpers (engine, sessions, migrations)."""

from .base import Base
from .session import (
    build_engine,
    create_session_factory,
    dispose_engine,
    get_engine,
    get_session,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "build_engine",
    "create_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session",
    "init_db",
    "session_scope",
]
