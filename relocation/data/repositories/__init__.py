"""Data repositories for the relocation engine.

Provides database access layer for all entities."""

from __future__ import annotations

from .bed_repository import BedRepository
from .camp_repository import CampRepository
from .disciplinary_repository import DisciplinaryActionRepository, DisciplinaryActionTypeRepository
from .permission_repository import PermissionRepository
from .person_repository import PersonRepository
from .transfer_log_repository import TransferLogRepository
from .transfer_request_repository import TransferRequestRepository

__all__ = [
    "BedRepository",
    "CampRepository",
    "DisciplinaryActionRepository",
    "DisciplinaryActionTypeRepository",
    "PermissionRepository",
    "PersonRepository",
    "TransferLogRepository",
    "TransferRequestRepository",
]
