"""Permission repository - resolves role permissions for a user."""

from __future__ import annotations

import json
import logging
from typing import Any

from pocketbase import PocketBase

from ...core.errors import StoreError
from .base import escape_filter_value

logger = logging.getLogger(__name__)


def _parse_permissions(raw: Any, role_name: str) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Error parsing permissions for role: {role_name}")
            return []
    if not isinstance(raw, list):
        return []
    return [str(p) for p in raw]


class PermissionRepository:
    """Reads user_roles and roles to build a user's permission set"""

    def __init__(self, pb_client: PocketBase) -> None:
        self.pb = pb_client

    def permissions_for(self, email: str) -> frozenset[str]:
        """Union of the permissions of every role assigned to the user."""
        if not email:
            return frozenset()

        try:
            assignments = self.pb.collection("user_roles").get_full_list(
                query_params={"filter": f'user_email = "{escape_filter_value(email)}"'}
            )
            role_ids = [getattr(a, "role_id", None) for a in assignments]
            role_ids = [rid for rid in role_ids if rid]
            if not role_ids:
                return frozenset()

            role_filter = " || ".join(f'id = "{escape_filter_value(rid)}"' for rid in role_ids)
            roles = self.pb.collection("roles").get_full_list(query_params={"filter": role_filter})
        except Exception as e:
            raise StoreError(f"Error loading roles for {email}: {e}") from e

        permissions: set[str] = set()
        for role in roles:
            permissions.update(_parse_permissions(getattr(role, "permissions", None), getattr(role, "name", "")))

        logger.debug(f"Resolved {len(permissions)} permissions for {email}")
        return frozenset(permissions)
