"""Abstract interfaces for the storage collaborator.

The engine only talks to these contracts. PocketBase-backed implementations
live in relocation.data.repositories; tests run the engine over in-memory
ones."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import (
    Bed,
    Camp,
    DisciplinaryAction,
    DisciplinaryActionType,
    Person,
    PersonKind,
    TransferLog,
    TransferRequest,
    TransferStatus,
)


class Repository(ABC):
    """Abstract base class for repositories.

    Writes are entity based so a repository that spans several collections
    (persons) can route each write. Writes raise on failure; they never
    report failure through a return value.
    """

    @abstractmethod
    def find_by_id(self, id: Any) -> Any | None:
        """Find entity by ID"""
        pass

    @abstractmethod
    def to_record(self, entity: Any) -> dict[str, Any]:
        """Map an entity to its stored field values"""
        pass

    @abstractmethod
    def record_key(self, entity: Any) -> str:
        """Stable "collection/id" label for logs and error reports"""
        pass

    @abstractmethod
    def update_fields(self, entity: Any, fields: dict[str, Any]) -> None:
        """Write a subset of stored fields for an existing entity"""
        pass

    @abstractmethod
    def create(self, entity: Any) -> str:
        """Insert a new entity, set its id and return it"""
        pass

    @abstractmethod
    def delete(self, entity: Any) -> None:
        """Delete an entity"""
        pass


class CampStore(Repository):
    @abstractmethod
    def list_all(self) -> list[Camp]:
        pass

    @abstractmethod
    def find_by_id(self, id: str) -> Camp | None:
        pass


class BedStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> Bed | None:
        pass


class PersonStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> Person | None:
        """Find a person of either kind"""
        pass

    @abstractmethod
    def find(self, kind: PersonKind, id: str) -> Person | None:
        pass

    @abstractmethod
    def list_in_exit_process(self, exit_camp_id: str) -> list[Person]:
        """Persons at the Exit Camp with a start date and unfinished formalities"""
        pass


class TransferRequestStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> TransferRequest | None:
        pass

    @abstractmethod
    def list_by_status(self, statuses: Iterable[TransferStatus]) -> list[TransferRequest]:
        pass

    @abstractmethod
    def list_all(self) -> list[TransferRequest]:
        pass


class DisciplinaryActionTypeStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> DisciplinaryActionType | None:
        pass


class DisciplinaryActionStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> DisciplinaryAction | None:
        pass


class TransferLogStore(Repository):
    @abstractmethod
    def find_by_id(self, id: str) -> TransferLog | None:
        pass


@dataclass
class Repositories:
    """Every store the engine needs, sharing one storage client"""

    camps: CampStore
    beds: BedStore
    persons: PersonStore
    transfers: TransferRequestStore
    action_types: DisciplinaryActionTypeStore
    disciplinary: DisciplinaryActionStore
    transfer_logs: TransferLogStore
