"""
Process settings for the Relocation API, read once from the environment
(or a local .env file) and cached.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

AUTH_MODES = ("bypass", "production")
WEAK_PASSWORDS = frozenset({"", "admin", "password", "123456"})
DOCKER_MARKER = Path("/.dockerenv")


def _is_docker_environment() -> bool:
    return DOCKER_MARKER.exists()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    pocketbase_url: str = "http://127.0.0.1:8090"
    pocketbase_admin_email: str = "admin@camp.local"
    pocketbase_admin_password: str = ""
    # Startup skips the superuser login and config validation (local tooling only)
    skip_pb_auth: bool = False

    auth_mode: str = Field(default="production", description="'production' checks PocketBase user tokens")

    allowed_origins_str: str = Field(default="http://localhost:3000,http://localhost:5173", alias="ALLOWED_ORIGINS")

    # Camp operations run on Gulf Standard Time
    tz: str = "Asia/Dubai"

    @field_validator("auth_mode", mode="after")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        mode = v.strip().lower()
        if mode not in AUTH_MODES:
            raise ValueError(f"AUTH_MODE must be one of {', '.join(AUTH_MODES)}, got '{v}'")
        return mode

    @field_validator("pocketbase_admin_password", mode="after")
    @classmethod
    def validate_admin_password(cls, v: str) -> str:
        if v in WEAK_PASSWORDS:
            logger.warning("POCKETBASE_ADMIN_PASSWORD is empty or a well-known default; set it before deploying")
        return v

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    def get_effective_auth_mode(self) -> str:
        """Container deployments always authenticate, whatever AUTH_MODE says."""
        if self.auth_mode == "bypass" and _is_docker_environment():
            logger.warning("AUTH_MODE=bypass ignored inside a container")
            return "production"
        return self.auth_mode


@lru_cache
def get_settings() -> Settings:
    return Settings()
