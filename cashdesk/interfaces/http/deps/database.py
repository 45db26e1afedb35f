"""Database session dependency: one transaction per request."""

from cashdesk.infrastructure.database.session import get_session as get_db_session

__all__ = ["get_db_session"]
