"""Transfer log repository for data access."""

from __future__ import annotations

from typing import Any

from ...core.interfaces import TransferLogStore
from ...core.models import MovementReason, PersonKind, TransferLog
from ...shared.date_utils import format_date, parse_date
from .base import PocketBaseRepository, relation


class TransferLogRepository(PocketBaseRepository, TransferLogStore):
    """Repository for TransferLog history rows"""

    collection = "transfer_logs"

    def to_record(self, entity: TransferLog) -> dict[str, Any]:
        data: dict[str, Any] = {
            "transfer_request_id": entity.transfer_request_id,
            "from_camp_id": entity.from_camp_id,
            "to_camp_id": entity.to_camp_id,
            "from_bed_id": entity.from_bed_id,
            "to_bed_id": entity.to_bed_id,
            "transfer_date": format_date(entity.transfer_date),
            "reason_for_movement": entity.reason.value,
            "transferred_by": entity.transferred_by,
            "notes": entity.notes,
        }
        if entity.person_kind == PersonKind.TECHNICIAN:
            data["technician_id"] = entity.person_id
        else:
            data["external_personnel_id"] = entity.person_id
        return data

    def _map_from_db(self, record: Any) -> TransferLog:
        technician_id = relation(record, "technician_id")
        if technician_id:
            person_id, kind = technician_id, PersonKind.TECHNICIAN
        else:
            person_id, kind = relation(record, "external_personnel_id") or "", PersonKind.EXTERNAL

        raw_reason = getattr(record, "reason_for_movement", None)
        return TransferLog(
            id=record.id,
            person_id=person_id,
            person_kind=kind,
            transfer_request_id=relation(record, "transfer_request_id"),
            from_camp_id=relation(record, "from_camp_id"),
            to_camp_id=relation(record, "to_camp_id") or "",
            from_bed_id=relation(record, "from_bed_id"),
            to_bed_id=relation(record, "to_bed_id"),
            transfer_date=parse_date(getattr(record, "transfer_date", None)),
            reason=MovementReason(raw_reason) if raw_reason else MovementReason.OTHER,
            transferred_by=relation(record, "transferred_by"),
            notes=getattr(record, "notes", "") or "",
        )
