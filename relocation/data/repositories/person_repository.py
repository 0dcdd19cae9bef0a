"""Person repository for data access.

Technicians and external personnel live in separate collections with the
same residency fields. Exit formalities are stored flat on the person record
under their historical field names."""

from __future__ import annotations

import logging
from typing import Any

from ...core.interfaces import PersonStore
from ...core.models import (
    CHECKLIST_ITEMS,
    DropStatus,
    ExitFormalities,
    ExitProcessStatus,
    Person,
    PersonKind,
    PersonStatus,
)
from ...shared.date_utils import format_date, parse_date
from .base import PocketBaseRepository, escape_filter_value, relation

logger = logging.getLogger(__name__)

COLLECTIONS: dict[PersonKind, str] = {
    PersonKind.TECHNICIAN: "technicians",
    PersonKind.EXTERNAL: "external_personnel",
}


def _parse_tri_state(value: Any) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


class PersonRepository(PocketBaseRepository, PersonStore):
    """Repository for technicians and external personnel"""

    collection = COLLECTIONS[PersonKind.TECHNICIAN]

    def _collection_for(self, entity: Person) -> str:
        return COLLECTIONS[entity.kind]

    def find_by_id(self, id: str) -> Person | None:
        """Find a person of either kind, technicians first."""
        for kind in PersonKind:
            person = self.find(kind, id)
            if person is not None:
                return person
        return None

    def find(self, kind: PersonKind, id: str) -> Person | None:
        record = self._get_one(COLLECTIONS[kind], id)
        if record is None:
            return None
        return self._map_from_db(record, kind)

    def list_in_exit_process(self, exit_camp_id: str) -> list[Person]:
        filter_str = (
            f'camp_id = "{escape_filter_value(exit_camp_id)}" '
            f'&& sonapur_exit_start_date != "" '
            f'&& exit_process_status != "{ExitProcessStatus.FORMALITIES_COMPLETED.value}"'
        )
        persons: list[Person] = []
        for kind, collection in COLLECTIONS.items():
            records = self._get_full_list(collection, filter_str)
            persons.extend(self._map_from_db(record, kind) for record in records)
        logger.debug(f"Found {len(persons)} persons in exit process at camp {exit_camp_id}")
        return persons

    def to_record(self, entity: Person) -> dict[str, Any]:
        exit_info = entity.exit
        data: dict[str, Any] = {
            "camp_id": entity.camp_id,
            "bed_id": entity.bed_id,
            "status": entity.status,
            "actual_arrival_date": format_date(entity.actual_arrival_date),
            "last_transfer_date": format_date(entity.last_transfer_date),
            "sonapur_exit_camp_id": exit_info.exit_camp_id,
            "sonapur_exit_start_date": format_date(exit_info.start_date),
            "deport_from_uae": exit_info.deport_from_uae,
            "exit_flight_number": exit_info.flight_number,
            "exit_flight_time": exit_info.flight_time,
            "expected_country_exit_date": format_date(exit_info.expected_exit_date),
            "airport_drop_vehicle_number": exit_info.vehicle_number,
            "airport_drop_driver_name": exit_info.driver_name,
            "airport_drop_scheduled_time": exit_info.scheduled_pickup_time,
            "airport_drop_status": exit_info.drop_status.value,
            "exit_process_status": exit_info.process_status.value if exit_info.process_status else "",
            "actual_country_exit_date": format_date(exit_info.actual_exit_date),
            "exit_formal_completion_date": format_date(exit_info.completion_date),
        }
        for item in CHECKLIST_ITEMS:
            data[item] = bool(exit_info.checklist.get(item, False))
        return data

    def _map_from_db(self, record: Any, kind: PersonKind = PersonKind.TECHNICIAN) -> Person:
        raw_process_status = getattr(record, "exit_process_status", None)
        raw_drop_status = getattr(record, "airport_drop_status", None)

        exit_info = ExitFormalities(
            exit_camp_id=relation(record, "sonapur_exit_camp_id"),
            start_date=parse_date(getattr(record, "sonapur_exit_start_date", None)),
            checklist={item: bool(getattr(record, item, False)) for item in CHECKLIST_ITEMS},
            deport_from_uae=_parse_tri_state(getattr(record, "deport_from_uae", None)),
            flight_number=getattr(record, "exit_flight_number", "") or "",
            flight_time=getattr(record, "exit_flight_time", "") or "",
            expected_exit_date=parse_date(getattr(record, "expected_country_exit_date", None)),
            vehicle_number=getattr(record, "airport_drop_vehicle_number", "") or "",
            driver_name=getattr(record, "airport_drop_driver_name", "") or "",
            scheduled_pickup_time=getattr(record, "airport_drop_scheduled_time", "") or "",
            drop_status=DropStatus(raw_drop_status) if raw_drop_status else DropStatus.NOT_SCHEDULED,
            process_status=ExitProcessStatus(raw_process_status) if raw_process_status else None,
            actual_exit_date=parse_date(getattr(record, "actual_country_exit_date", None)),
            completion_date=parse_date(getattr(record, "exit_formal_completion_date", None)),
        )

        if kind == PersonKind.EXTERNAL:
            identifier = getattr(record, "company_name", "") or ""
        else:
            identifier = getattr(record, "employee_id", "") or ""

        return Person(
            id=record.id,
            kind=kind,
            full_name=getattr(record, "full_name", "") or "",
            employee_id=identifier,
            camp_id=relation(record, "camp_id"),
            bed_id=relation(record, "bed_id"),
            status=getattr(record, "status", None) or PersonStatus.ACTIVE.value,
            actual_arrival_date=parse_date(getattr(record, "actual_arrival_date", None)),
            last_transfer_date=parse_date(getattr(record, "last_transfer_date", None)),
            exit=exit_info,
        )
