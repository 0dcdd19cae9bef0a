"""
Shared dependencies for the Relocation API.

This module provides:
- PocketBase client management (global instance authenticated as admin)
- The engine wired over PocketBase repositories
- The current actor, with role permissions resolved from PocketBase
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, HTTPException, Request

from pocketbase import PocketBase
from relocation.config import ConfigLoader
from relocation.core.policy import Actor
from relocation.data import RepositoryFactory
from relocation.data.repositories import PermissionRepository
from relocation.engine import Engine, build_engine

from .auth import DEV_ADMIN, AuthUser
from .settings import get_settings

logger = logging.getLogger(__name__)

# ========================================
# PocketBase Client
# ========================================

_settings = get_settings()
pb_url = _settings.pocketbase_url
pb = PocketBase(pb_url)

_repository_factory = RepositoryFactory(pb)


async def authenticate_pb() -> None:
    """Authenticate with PocketBase as admin."""
    settings = get_settings()
    try:
        await asyncio.to_thread(
            pb.collection("_superusers").auth_with_password,
            settings.pocketbase_admin_email,
            settings.pocketbase_admin_password,
        )
        logger.info("Successfully authenticated with PocketBase")
    except Exception as e:
        logger.error(f"Failed to authenticate with PocketBase: {e}")
        raise


# ========================================
# Engine
# ========================================


def get_engine() -> Engine:
    """Engine over the shared PocketBase repositories (overridden in tests)."""
    return build_engine(_repository_factory.build(), ConfigLoader.get_instance())


def get_permission_repository() -> PermissionRepository:
    return _repository_factory.get_permission_repository()


# ========================================
# Current actor
# ========================================


def get_current_actor(
    request: Request,
    permissions: PermissionRepository = Depends(get_permission_repository),
) -> Actor:
    """Build the engine Actor for the authenticated user.

    Falls back to the development admin when AUTH_MODE=bypass and no auth
    middleware ran.
    """
    user: AuthUser | None = getattr(request.state, "user", None)
    if user is None:
        if get_settings().get_effective_auth_mode() == "bypass":
            user = DEV_ADMIN
        else:
            raise HTTPException(status_code=401, detail="Not authenticated")

    granted = frozenset() if user.is_admin else permissions.permissions_for(user.email)
    return Actor(id=user.user_id, email=user.email, is_admin=user.is_admin, permissions=granted)


__all__ = [
    "pb",
    "pb_url",
    "authenticate_pb",
    "get_engine",
    "get_permission_repository",
    "get_current_actor",
]
