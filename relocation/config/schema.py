"""Typed keys the engine reads from the PocketBase ``config`` collection.

A key's dot notation maps onto a (category, config_key) record pair:
``exit.sla_days`` lives in category ``exit`` under ``sla_days``. Keys not
listed here are refused by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


@dataclass(frozen=True)
class ConfigKey:
    key: str
    kind: type
    default: Any = None
    required: bool = False
    description: str = ""
    bounds: tuple[int, int] | None = None

    @property
    def category(self) -> str:
        return self.key.split(".", 1)[0] if "." in self.key else "general"

    @property
    def record_key(self) -> str:
        return self.key.split(".", 1)[1].replace(".", "_") if "." in self.key else self.key

    @property
    def env_var(self) -> str:
        # exit.sla_days -> CONFIG_EXIT_SLA_DAYS
        return "CONFIG_" + self.key.upper().replace(".", "_")

    def parse(self, raw: Any) -> Any:
        """Coerce a stored or environment value to this key's type.

        Raises ValueError or TypeError when the value cannot be coerced.
        """
        if self.kind is bool:
            if isinstance(raw, str):
                return raw.strip().lower() in TRUE_STRINGS
            return bool(raw)
        if self.kind is int:
            if isinstance(raw, bool):
                raise TypeError(f"expected an integer, got {raw!r}")
            return int(raw)
        return str(raw) if raw is not None else ""

    def problem(self, value: Any) -> str | None:
        """Why value is unacceptable for this key, or None."""
        if self.bounds is not None:
            low, high = self.bounds
            if not low <= value <= high:
                return f"{value} is outside {low}..{high}"
        return None


CONFIG_SCHEMA: dict[str, ConfigKey] = {
    key.key: key
    for key in (
        ConfigKey(
            "exit.camp_id",
            str,
            default="",
            description="Id of the designated Exit Camp",
        ),
        ConfigKey(
            "exit.legacy_name_match",
            bool,
            default=True,
            description="Fall back to the 'sonapur' + 'exit' name/code match when no camp is designated",
        ),
        ConfigKey(
            "exit.sla_days",
            int,
            default=7,
            description="Whole days in exit formalities before a case is overdue",
            bounds=(1, 90),
        ),
    )
}


def get_schema_key(key: str) -> ConfigKey | None:
    return CONFIG_SCHEMA.get(key)


def get_all_required_keys() -> list[str]:
    return [key for key, schema in CONFIG_SCHEMA.items() if schema.required]

