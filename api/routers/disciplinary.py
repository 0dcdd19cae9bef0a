"""
Disciplinary Router - record actions and start exit processes.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends

from relocation.core.policy import Actor
from relocation.engine import Engine

from ..dependencies import get_current_actor, get_engine
from ..schemas.disciplinary import (
    DisciplinaryActionCreate,
    DisciplinaryActionResponse,
    InitiateExitRequest,
    TriggerResultResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/disciplinary", tags=["disciplinary"])


@router.post("/actions", response_model=DisciplinaryActionResponse, status_code=201)
async def record_action(
    body: DisciplinaryActionCreate,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> DisciplinaryActionResponse:
    """Record a disciplinary action; resignations and terminations start the exit process."""
    action, result = await asyncio.to_thread(
        engine.disciplinary.record_action,
        actor,
        body.technician_id,
        body.action_type_id,
        body.action_type,
        body.action_date,
        body.violation,
        body.termination_reason,
        body.exit_process_choice,
        body.notes,
    )
    return DisciplinaryActionResponse.from_model(action, result)


@router.post("/actions/{action_id}/exit-process", response_model=TriggerResultResponse)
async def initiate_exit_process(
    action_id: str,
    body: InitiateExitRequest,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TriggerResultResponse:
    """Follow-up for a resignation recorded without an exit choice."""
    result = await asyncio.to_thread(
        engine.disciplinary.initiate_exit_process, actor, action_id, body.exit_process_choice
    )
    return TriggerResultResponse.from_result(result)
