"""Capability checks for engine operations.

The state machine refuses disallowed operations itself, whatever surface
calls it. Permission names match the role permissions stored in PocketBase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .errors import AuthorizationError

logger = logging.getLogger(__name__)


class Permission(Enum):
    """Named permissions granted through roles"""

    CREATE_TRANSFER = "create_transfer_requests"
    ALLOCATE_BEDS = "allocate_beds"
    APPROVE_TRANSFER = "approve_transfer_requests"
    DISPATCH_TRANSFER = "dispatch_transfer_requests"
    CONFIRM_ARRIVALS = "confirm_arrivals"
    CANCEL_TRANSFER = "cancel_transfer_requests"
    MANAGE_EXIT_FORMALITIES = "manage_exit_formalities"
    RECORD_DISCIPLINARY = "record_disciplinary_actions"


@dataclass(frozen=True)
class Actor:
    """The user performing an operation"""

    id: str
    email: str = ""
    is_admin: bool = False
    permissions: frozenset[str] = field(default_factory=frozenset)

    def can(self, permission: Permission) -> bool:
        return self.is_admin or permission.value in self.permissions


class TransitionPolicy:
    """Decides whether an actor may perform an operation."""

    def allows(self, actor: Actor, permission: Permission) -> bool:
        return actor.can(permission)

    def require(self, actor: Actor, permission: Permission) -> None:
        """Raise AuthorizationError unless the actor holds the permission."""
        if not self.allows(actor, permission):
            logger.warning(f"Refused {permission.value} for actor {actor.id}")
            raise AuthorizationError(actor.id, permission.value)
