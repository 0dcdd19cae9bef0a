"""
RepositoryFactory - Centralized repository instantiation.

Provides shared instances of repositories so every store the engine uses
talks to the same PocketBase client.
"""

from __future__ import annotations

import logging

from pocketbase import PocketBase

from ..core.interfaces import Repositories
from .repositories import (
    BedRepository,
    CampRepository,
    DisciplinaryActionRepository,
    DisciplinaryActionTypeRepository,
    PermissionRepository,
    PersonRepository,
    TransferLogRepository,
    TransferRequestRepository,
)

logger = logging.getLogger(__name__)


class RepositoryFactory:
    """
    Factory for creating and caching repository instances.

    Usage:
        factory = RepositoryFactory(pb_client)
        repos = factory.build()
        service = TransferService(repos, ...)

        # Drop cached instances (e.g. after re-authentication)
        factory.cleanup()
    """

    def __init__(self, pb_client: PocketBase):
        self._pb_client = pb_client
        self._repositories: Repositories | None = None
        self._permission_repository: PermissionRepository | None = None

    def build(self) -> Repositories:
        """Get the Repositories bundle, creating it on first use."""
        if self._repositories is None:
            logger.debug("Creating repositories")
            action_types = DisciplinaryActionTypeRepository(self._pb_client)
            self._repositories = Repositories(
                camps=CampRepository(self._pb_client),
                beds=BedRepository(self._pb_client),
                persons=PersonRepository(self._pb_client),
                transfers=TransferRequestRepository(self._pb_client),
                action_types=action_types,
                disciplinary=DisciplinaryActionRepository(self._pb_client, action_types),
                transfer_logs=TransferLogRepository(self._pb_client),
            )
        return self._repositories

    def get_permission_repository(self) -> PermissionRepository:
        if self._permission_repository is None:
            self._permission_repository = PermissionRepository(self._pb_client)
        return self._permission_repository

    def cleanup(self) -> None:
        """Clear cached instances so new ones are created on next access."""
        logger.debug("Cleaning up RepositoryFactory")
        self._repositories = None
        self._permission_repository = None
