"""Bed repository for data access.

A bed record names its occupant through one of two relation fields,
technician_id or external_personnel_id, depending on the occupant's kind."""

from __future__ import annotations

from typing import Any

from ...core.interfaces import BedStore
from ...core.models import Bed, BedStatus, PersonKind
from ...shared.date_utils import format_date, parse_date
from .base import PocketBaseRepository, relation


class BedRepository(PocketBaseRepository, BedStore):
    """Repository for Bed data access"""

    collection = "beds"

    def to_record(self, entity: Bed) -> dict[str, Any]:
        technician_id = entity.occupant_id if entity.occupant_kind == PersonKind.TECHNICIAN else None
        external_id = entity.occupant_id if entity.occupant_kind == PersonKind.EXTERNAL else None
        return {
            "camp_id": entity.camp_id,
            "bed_number": entity.bed_number,
            "status": entity.status.value,
            "reserved_for": entity.reserved_for,
            "reserved_until": format_date(entity.reserved_until),
            "technician_id": technician_id,
            "external_personnel_id": external_id,
        }

    def _map_from_db(self, record: Any) -> Bed:
        technician_id = relation(record, "technician_id")
        external_id = relation(record, "external_personnel_id")

        occupant_id: str | None = None
        occupant_kind: PersonKind | None = None
        if technician_id:
            occupant_id, occupant_kind = technician_id, PersonKind.TECHNICIAN
        elif external_id:
            occupant_id, occupant_kind = external_id, PersonKind.EXTERNAL

        return Bed(
            id=record.id,
            camp_id=relation(record, "camp_id") or "",
            bed_number=str(getattr(record, "bed_number", "") or ""),
            status=BedStatus(getattr(record, "status", None) or BedStatus.AVAILABLE.value),
            reserved_for=getattr(record, "reserved_for", None) or None,
            reserved_until=parse_date(getattr(record, "reserved_until", None)),
            occupant_id=occupant_id,
            occupant_kind=occupant_kind,
        )
