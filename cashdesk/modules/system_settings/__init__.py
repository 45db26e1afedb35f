"""Process-wide configuration flags stored in the database."""

from .reader import BLIND_COUNT_FLAG, ConfigReader, parse_flag

__all__ = ["BLIND_COUNT_FLAG", "ConfigReader", "parse_flag"]
