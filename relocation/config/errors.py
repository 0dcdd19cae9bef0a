"""Errors raised while reading engine configuration."""

from __future__ import annotations


class ConfigError(Exception):
    """A configuration key could not be resolved to a usable value."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class MissingKeyError(ConfigError):
    pass


class ValidationError(ConfigError):
    """The stored or overridden value has the wrong type or is out of range."""


class DatabaseUnavailableError(ConfigError):
    pass


class UnknownKeyError(ConfigError):
    pass
