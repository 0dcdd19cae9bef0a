"""
Pydantic schemas for disciplinary endpoints.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from relocation.core.models import DisciplinaryAction, ExitProcessChoice
from relocation.engine.disciplinary_trigger import TriggerResult


class DisciplinaryActionCreate(BaseModel):
    """Request model for recording a disciplinary action."""

    technician_id: str
    action_type_id: str | None = None
    action_type: str = ""  # legacy code
    action_date: date | None = None
    violation: str = ""
    termination_reason: str | None = None
    exit_process_choice: ExitProcessChoice | None = None
    notes: str = ""


class InitiateExitRequest(BaseModel):
    exit_process_choice: ExitProcessChoice


class TriggerResultResponse(BaseModel):
    outcome: str
    transfer_request_id: str | None = None
    exit_camp_id: str | None = None

    @classmethod
    def from_result(cls, result: TriggerResult) -> TriggerResultResponse:
        return cls(
            outcome=result.outcome.value,
            transfer_request_id=result.transfer_request.id if result.transfer_request else None,
            exit_camp_id=result.exit_camp_id,
        )


class DisciplinaryActionResponse(BaseModel):
    id: str
    technician_id: str
    kind: str
    action_date: date | None = None
    termination_reason: str | None = None
    exit_process_choice: str | None = None
    follow_up_required: bool
    trigger: TriggerResultResponse

    @classmethod
    def from_model(cls, action: DisciplinaryAction, result: TriggerResult) -> DisciplinaryActionResponse:
        return cls(
            id=str(action.id),
            technician_id=action.person_id,
            kind=action.kind.value,
            action_date=action.action_date,
            termination_reason=action.termination_reason,
            exit_process_choice=action.exit_process_choice.value if action.exit_process_choice else None,
            follow_up_required=action.follow_up_required,
            trigger=TriggerResultResponse.from_result(result),
        )
