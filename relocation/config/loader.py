"""
ConfigLoader - engine configuration backed by PocketBase.

Lookup order for a key: ``CONFIG_<KEY>`` environment override, then the
``config`` collection record, then the key's schema default. Database
values are cached for ``cache_ttl_seconds``.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from .errors import (
    ConfigError,
    DatabaseUnavailableError,
    MissingKeyError,
    UnknownKeyError,
    ValidationError,
)
from .schema import ConfigKey, get_all_required_keys, get_schema_key

logger = logging.getLogger(__name__)

DEFAULT_POCKETBASE_URL = "http://127.0.0.1:8090"

_ABSENT = object()


class _Cached(NamedTuple):
    value: Any
    stored_at: float


def connect_from_environment(pocketbase_url: str | None = None) -> PocketBase:
    """PocketBase client authenticated with the admin credentials in the environment."""
    pb = PocketBase(pocketbase_url or os.environ.get("POCKETBASE_URL", DEFAULT_POCKETBASE_URL))
    try:
        pb.collection("_superusers").auth_with_password(
            os.environ.get("POCKETBASE_ADMIN_EMAIL", "admin@camp.local"),
            os.environ.get("POCKETBASE_ADMIN_PASSWORD", ""),
        )
    except Exception as e:
        # An unreachable database surfaces again on the first read
        logger.warning(f"PocketBase admin login failed for config loader: {e}")
    return pb


class ConfigLoader:
    """
    Process-wide configuration reader.

    Usage:
        ConfigLoader.initialize(pb_client=pb)
        sla_days = ConfigLoader.get_instance().get_int("exit.sla_days")

        # Tests swap the instance
        with ConfigLoader.use(stub_loader):
            ...
    """

    _instance: ConfigLoader | None = None

    def __init__(self, pb_client: PocketBase | None = None, cache_ttl_seconds: int = 300):
        self._pb = pb_client if pb_client is not None else connect_from_environment()
        self._cache_ttl = cache_ttl_seconds
        self._cache: dict[str, _Cached] = {}

    # ------------------------------------------------------------------
    # Singleton
    # ------------------------------------------------------------------

    @classmethod
    def initialize(
        cls,
        pocketbase_url: str | None = None,
        validate_on_init: bool = True,
        pb_client: PocketBase | None = None,
    ) -> ConfigLoader:
        """Create the shared loader once; later calls return the existing one.

        Raises:
            ConfigError: validate_on_init is set and a required key is
                missing or invalid
        """
        if cls._instance is not None:
            return cls._instance

        loader = cls(pb_client=pb_client if pb_client is not None else connect_from_environment(pocketbase_url))
        if validate_on_init:
            loader.check_required_keys()

        cls._instance = loader
        logger.info("ConfigLoader initialized")
        return loader

    @classmethod
    def get_instance(cls) -> ConfigLoader:
        if cls._instance is None:
            return cls.initialize(validate_on_init=False)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    @classmethod
    @contextmanager
    def use(cls, loader: ConfigLoader) -> Iterator[None]:
        """Temporarily install loader as the shared instance."""
        previous, cls._instance = cls._instance, loader
        try:
            yield
        finally:
            cls._instance = previous

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def check_required_keys(self) -> None:
        """Fail fast when any required key is missing or unusable. Reads bypass the cache."""
        self.invalidate_cache()
        problems = []
        for key in get_all_required_keys():
            try:
                self.get(key)
            except (MissingKeyError, ValidationError) as e:
                problems.append(str(e))
        if problems:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(problems))
        logger.info("All required config keys present")

    def get(self, key: str) -> Any:
        """
        Typed value for key.

        Raises:
            UnknownKeyError: key is not in the schema
            MissingKeyError: a required key has no record
            ValidationError: the value has the wrong type or is out of range
            DatabaseUnavailableError: PocketBase failed for a reason other than 404
        """
        schema = get_schema_key(key)
        if schema is None:
            raise UnknownKeyError(f"Unknown config key: '{key}'", key)

        override = os.environ.get(schema.env_var)
        if override is not None:
            return self._checked(schema, override, source=schema.env_var)

        cached = self._cache.get(key)
        if cached is not None and time.monotonic() - cached.stored_at < self._cache_ttl:
            return cached.value

        raw = self._fetch(schema)
        if raw is _ABSENT:
            if schema.required:
                raise MissingKeyError(f"Required config key '{key}' has no record in the config collection", key)
            value = schema.default
        else:
            value = self._checked(schema, raw, source="config collection")

        self._cache[key] = _Cached(value, time.monotonic())
        return value

    def get_int(self, key: str) -> int:
        return int(self.get(key))

    def get_bool(self, key: str) -> bool:
        return bool(self.get(key))

    def get_str(self, key: str) -> str:
        return str(self.get(key))

    def invalidate_cache(self, key: str | None = None) -> None:
        """Drop one cached key, or all of them."""
        if key is None:
            self._cache.clear()
        else:
            self._cache.pop(key, None)

    def _checked(self, schema: ConfigKey, raw: Any, source: str) -> Any:
        try:
            value = schema.parse(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Config key '{schema.key}' from {source} has invalid type: {e}", schema.key) from e
        problem = schema.problem(value)
        if problem:
            raise ValidationError(f"Config key '{schema.key}' from {source}: {problem}", schema.key)
        return value

    def _fetch(self, schema: ConfigKey) -> Any:
        filter_str = f'category = "{schema.category}" && config_key = "{schema.record_key}"'
        try:
            record = self._pb.collection("config").get_first_list_item(filter_str)
        except ClientResponseError as e:
            if getattr(e, "status", None) == 404:
                return _ABSENT
            raise DatabaseUnavailableError(f"Could not read config key '{schema.key}': {e}", schema.key) from e
        return getattr(record, "value", None)
