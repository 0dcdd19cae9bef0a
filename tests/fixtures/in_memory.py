"""
In-memory repositories for engine tests.

Each store keeps one field dict per record, the same shape to_record returns,
so a UnitOfWork diff, commit and compensation behave as they would against
PocketBase. Reads always hand out fresh entity copies.

Failure injection:
    store.fail_after = 1   # the second write to this store raises StoreError
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from relocation.core.errors import StoreError
from relocation.core.interfaces import (
    BedStore,
    CampStore,
    DisciplinaryActionStore,
    DisciplinaryActionTypeStore,
    PersonStore,
    Repositories,
    TransferLogStore,
    TransferRequestStore,
)
from relocation.core.models import (
    Bed,
    Camp,
    DisciplinaryAction,
    DisciplinaryActionType,
    ExitProcessStatus,
    Person,
    PersonKind,
    TransferLog,
    TransferRequest,
    TransferStatus,
)


class InMemoryStore:
    """Shared record handling for the in-memory stores."""

    entity_type: type = object
    name = "records"

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.fail_after: int | None = None
        self.writes = 0
        self._next_id = 1

    # Test helpers -------------------------------------------------------

    def seed(self, *entities: Any) -> None:
        for entity in entities:
            self.records[entity.id] = self.to_record(entity)

    def get(self, id: str) -> Any:
        """Stored state of a record, as a fresh entity."""
        return self.entity_type(**copy.deepcopy(self.records[id]))

    def all(self) -> list[Any]:
        return [self.get(id) for id in self.records]

    # Repository contract ------------------------------------------------

    def find_by_id(self, id: str) -> Any | None:
        if id not in self.records:
            return None
        return self.get(id)

    def to_record(self, entity: Any) -> dict[str, Any]:
        return copy.deepcopy(vars(entity))

    def record_key(self, entity: Any) -> str:
        return f"{self.name}/{entity.id}"

    def update_fields(self, entity: Any, fields: dict[str, Any]) -> None:
        self._count_write("update", entity.id)
        if entity.id not in self.records:
            raise StoreError(f"{self.name}/{entity.id} does not exist")
        self.records[entity.id].update(copy.deepcopy(fields))

    def create(self, entity: Any) -> str:
        self._count_write("create", entity.id)
        if entity.id is None:
            entity.id = f"{self.name}-{self._next_id}"
            self._next_id += 1
        self.records[entity.id] = self.to_record(entity)
        return entity.id

    def delete(self, entity: Any) -> None:
        self._count_write("delete", entity.id)
        self.records.pop(entity.id, None)

    def _count_write(self, operation: str, id: str | None) -> None:
        if self.fail_after is not None and self.writes >= self.fail_after:
            raise StoreError(f"injected failure: {operation} {self.name}/{id}")
        self.writes += 1


class InMemoryCampStore(InMemoryStore, CampStore):
    entity_type = Camp
    name = "camps"

    def list_all(self) -> list[Camp]:
        return self.all()


class InMemoryBedStore(InMemoryStore, BedStore):
    entity_type = Bed
    name = "beds"


class InMemoryPersonStore(InMemoryStore, PersonStore):
    entity_type = Person
    name = "persons"

    def find(self, kind: PersonKind, id: str) -> Person | None:
        person = self.find_by_id(id)
        if person is None or person.kind != kind:
            return None
        return person

    def list_in_exit_process(self, exit_camp_id: str) -> list[Person]:
        return [
            person
            for person in self.all()
            if person.camp_id == exit_camp_id
            and person.exit.start_date is not None
            and person.exit.process_status != ExitProcessStatus.FORMALITIES_COMPLETED
        ]


class InMemoryTransferRequestStore(InMemoryStore, TransferRequestStore):
    entity_type = TransferRequest
    name = "transfer_requests"

    def list_by_status(self, statuses: Iterable[TransferStatus]) -> list[TransferRequest]:
        wanted = set(statuses)
        return [request for request in self.all() if request.status in wanted]

    def list_all(self) -> list[TransferRequest]:
        return self.all()


class InMemoryActionTypeStore(InMemoryStore, DisciplinaryActionTypeStore):
    entity_type = DisciplinaryActionType
    name = "disciplinary_action_types"


class InMemoryDisciplinaryStore(InMemoryStore, DisciplinaryActionStore):
    entity_type = DisciplinaryAction
    name = "disciplinary_actions"


class InMemoryTransferLogStore(InMemoryStore, TransferLogStore):
    entity_type = TransferLog
    name = "transfer_logs"


def build_repositories() -> Repositories:
    return Repositories(
        camps=InMemoryCampStore(),
        beds=InMemoryBedStore(),
        persons=InMemoryPersonStore(),
        transfers=InMemoryTransferRequestStore(),
        action_types=InMemoryActionTypeStore(),
        disciplinary=InMemoryDisciplinaryStore(),
        transfer_logs=InMemoryTransferLogStore(),
    )


class StaticConfig:
    """Config values for the engine without a PocketBase config collection."""

    DEFAULTS: dict[str, Any] = {
        "exit.camp_id": "",
        "exit.legacy_name_match": True,
        "exit.sla_days": 7,
    }

    def __init__(self, values: dict[str, Any] | None = None):
        self.values = {**self.DEFAULTS, **(values or {})}

    def get_str(self, key: str) -> str:
        return str(self.values[key])

    def get_bool(self, key: str) -> bool:
        return bool(self.values[key])

    def get_int(self, key: str) -> int:
        return int(self.values[key])
