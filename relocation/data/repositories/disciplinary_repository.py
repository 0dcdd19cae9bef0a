"""Disciplinary action and action type repositories.

Action types are classified into ExitActionKind here, once, when the record
is loaded. Older disciplinary records predate the action type collection and
carry only a legacy action_type code; they are classified from that code."""

from __future__ import annotations

import logging
from typing import Any

from ...core.interfaces import DisciplinaryActionStore, DisciplinaryActionTypeStore
from ...core.models import (
    DisciplinaryAction,
    DisciplinaryActionType,
    ExitActionKind,
    ExitProcessChoice,
    resolve_exit_kind,
)
from ...shared.date_utils import format_date, parse_date
from .base import PocketBaseRepository, relation

logger = logging.getLogger(__name__)


class DisciplinaryActionTypeRepository(PocketBaseRepository, DisciplinaryActionTypeStore):
    """Repository for DisciplinaryActionType data access"""

    collection = "disciplinary_action_types"

    def to_record(self, entity: DisciplinaryActionType) -> dict[str, Any]:
        return {"name": entity.name, "code": entity.code}

    def _map_from_db(self, record: Any) -> DisciplinaryActionType:
        name = getattr(record, "name", "") or ""
        code = getattr(record, "code", "") or ""
        return DisciplinaryActionType(id=record.id, name=name, code=code, kind=resolve_exit_kind(name, code))


class DisciplinaryActionRepository(PocketBaseRepository, DisciplinaryActionStore):
    """Repository for DisciplinaryAction data access"""

    collection = "disciplinary_actions"

    def __init__(self, pb_client: Any, action_types: DisciplinaryActionTypeRepository | None = None) -> None:
        super().__init__(pb_client)
        self.action_types = action_types or DisciplinaryActionTypeRepository(pb_client)

    def to_record(self, entity: DisciplinaryAction) -> dict[str, Any]:
        return {
            "technician_id": entity.person_id,
            "action_type_id": entity.action_type_id,
            "action_type": entity.legacy_action_type,
            "action_date": format_date(entity.action_date),
            "violation": entity.violation,
            "termination_reason": entity.termination_reason or "",
            "exit_process_choice": entity.exit_process_choice.value if entity.exit_process_choice else "",
            "follow_up_required": entity.follow_up_required,
            "notes": entity.notes,
        }

    def _map_from_db(self, record: Any) -> DisciplinaryAction:
        action_type_id = relation(record, "action_type_id")
        legacy_code = getattr(record, "action_type", "") or ""

        kind = ExitActionKind.OTHER
        if action_type_id:
            action_type = self.action_types.find_by_id(action_type_id)
            if action_type is not None:
                kind = action_type.kind
            else:
                logger.warning(f"Disciplinary action {record.id} references missing type {action_type_id}")
        if kind == ExitActionKind.OTHER:
            kind = resolve_exit_kind(legacy_code)

        raw_choice = getattr(record, "exit_process_choice", None)
        return DisciplinaryAction(
            id=record.id,
            person_id=relation(record, "technician_id") or "",
            action_type_id=action_type_id,
            legacy_action_type=legacy_code,
            kind=kind,
            action_date=parse_date(getattr(record, "action_date", None)),
            violation=getattr(record, "violation", "") or "",
            termination_reason=getattr(record, "termination_reason", None) or None,
            exit_process_choice=ExitProcessChoice(raw_choice) if raw_choice else None,
            follow_up_required=bool(getattr(record, "follow_up_required", False)),
            notes=getattr(record, "notes", "") or "",
        )
