"""
Engine configuration: the Exit Camp reference and the exit formalities SLA.

    config = ConfigLoader.get_instance()
    exit_camp_id = config.get_str("exit.camp_id")
"""

from __future__ import annotations

from .errors import (
    ConfigError,
    DatabaseUnavailableError,
    MissingKeyError,
    UnknownKeyError,
    ValidationError,
)
from .loader import ConfigLoader, connect_from_environment
from .schema import CONFIG_SCHEMA, ConfigKey, get_all_required_keys, get_schema_key

__all__ = [
    "CONFIG_SCHEMA",
    "ConfigError",
    "ConfigKey",
    "ConfigLoader",
    "DatabaseUnavailableError",
    "MissingKeyError",
    "UnknownKeyError",
    "ValidationError",
    "connect_from_environment",
    "get_all_required_keys",
    "get_schema_key",
]
