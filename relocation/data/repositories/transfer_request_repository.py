"""Transfer request repository for data access.

Handles all database operations related to TransferRequest records."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from ...core.interfaces import TransferRequestStore
from ...core.models import MovementReason, PersonKind, TransferRequest, TransferStatus
from ...shared.date_utils import format_date, parse_date
from .base import PocketBaseRepository, relation, relation_list

logger = logging.getLogger(__name__)


def parse_allocated_beds(raw: Any) -> dict[str, str]:
    """Read allocated_beds_data into a person id -> bed id map.

    Two layouts exist in stored records: a list of allocation rows
    ({"personnel_id", "bed_id", ...}) and a plain {person_id: bed_id} map.
    """
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed allocated_beds_data: {raw[:80]!r}")
            return {}

    if isinstance(raw, dict):
        return {str(person_id): str(bed_id) for person_id, bed_id in raw.items() if bed_id}

    allocations: dict[str, str] = {}
    for row in raw:
        if not isinstance(row, dict):
            continue
        person_id = row.get("personnel_id")
        bed_id = row.get("bed_id")
        if person_id and bed_id:
            allocations[str(person_id)] = str(bed_id)
    return allocations


class TransferRequestRepository(PocketBaseRepository, TransferRequestStore):
    """Repository for TransferRequest data access"""

    collection = "transfer_requests"

    def list_by_status(self, statuses: Iterable[TransferStatus]) -> list[TransferRequest]:
        conditions = [f'status = "{status.value}"' for status in statuses]
        if not conditions:
            return []
        filter_str = "(" + " || ".join(conditions) + ")"
        return [self._map_from_db(record) for record in self._get_full_list(self.collection, filter_str)]

    def list_all(self) -> list[TransferRequest]:
        return [self._map_from_db(record) for record in self._get_full_list(self.collection)]

    def to_record(self, entity: TransferRequest) -> dict[str, Any]:
        allocated_rows = [
            {
                "personnel_id": person_id,
                "personnel_type": (entity.kind_of(person_id) or PersonKind.TECHNICIAN).value,
                "bed_id": bed_id,
            }
            for person_id, bed_id in entity.allocated_beds.items()
        ]
        return {
            "source_camp_id": entity.source_camp_id,
            "target_camp_id": entity.target_camp_id,
            "request_date": format_date(entity.request_date),
            "reason_for_movement": entity.reason.value,
            "technician_ids": list(entity.technician_ids),
            "external_personnel_ids": list(entity.external_personnel_ids),
            "allocated_beds_data": json.dumps(allocated_rows) if allocated_rows else "",
            "status": entity.status.value,
            "notes": entity.notes,
            "requested_by": entity.requested_by,
            "allocation_confirmed_by": entity.allocation_confirmed_by,
            "allocation_confirmed_date": format_date(entity.allocation_confirmed_date),
            "approved_by": entity.approved_by,
            "approved_date": format_date(entity.approved_date),
            "rejection_reason": entity.rejection_reason or "",
            "rejected_by": entity.rejected_by,
            "rejected_date": format_date(entity.rejected_date),
            "dispatched_by": entity.dispatched_by,
            "dispatch_date": format_date(entity.dispatch_date),
            "cancelled_by": entity.cancelled_by,
            "cancelled_date": format_date(entity.cancelled_date),
            "cancellation_reason": entity.cancellation_reason or "",
        }

    def _map_from_db(self, record: Any) -> TransferRequest:
        raw_reason = getattr(record, "reason_for_movement", None)
        try:
            reason = MovementReason(raw_reason) if raw_reason else MovementReason.OTHER
        except ValueError:
            logger.debug(f"Transfer request {record.id} has unrecognized reason '{raw_reason}'")
            reason = MovementReason.OTHER

        return TransferRequest(
            id=record.id,
            source_camp_id=relation(record, "source_camp_id") or "",
            target_camp_id=relation(record, "target_camp_id") or "",
            request_date=parse_date(getattr(record, "request_date", None)),
            reason=reason,
            technician_ids=relation_list(record, "technician_ids"),
            external_personnel_ids=relation_list(record, "external_personnel_ids"),
            allocated_beds=parse_allocated_beds(getattr(record, "allocated_beds_data", None)),
            status=TransferStatus(getattr(record, "status", None) or TransferStatus.PENDING_ALLOCATION.value),
            notes=getattr(record, "notes", "") or "",
            requested_by=relation(record, "requested_by"),
            allocation_confirmed_by=relation(record, "allocation_confirmed_by"),
            allocation_confirmed_date=parse_date(getattr(record, "allocation_confirmed_date", None)),
            approved_by=relation(record, "approved_by"),
            approved_date=parse_date(getattr(record, "approved_date", None)),
            rejection_reason=getattr(record, "rejection_reason", None) or None,
            rejected_by=relation(record, "rejected_by"),
            rejected_date=parse_date(getattr(record, "rejected_date", None)),
            dispatched_by=relation(record, "dispatched_by"),
            dispatch_date=parse_date(getattr(record, "dispatch_date", None)),
            cancelled_by=relation(record, "cancelled_by"),
            cancelled_date=parse_date(getattr(record, "cancelled_date", None)),
            cancellation_reason=getattr(record, "cancellation_reason", None) or None,
        )
