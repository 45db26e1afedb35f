"""Logging setup for the server process."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from cashdesk.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single console handler on the ``cashdesk`` logger tree."""
    resolved = (level or get_settings().logging.level).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "cashdesk": {"handlers": ["console"], "level": resolved, "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", resolved)


__all__ = ["LOG_FORMAT", "configure_logging"]
