"""
Exit Formalities Router - checklist, deport decision and airport drop.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends

from relocation.core.policy import Actor
from relocation.engine import Engine

from ..dependencies import get_current_actor, get_engine
from ..schemas.exit_formalities import (
    ChecklistUpdate,
    DeportDecisionUpdate,
    ExitCaseResponse,
    PersonExitResponse,
    VehicleAssignment,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/exit-formalities", tags=["exit-formalities"])


@router.get("", response_model=list[ExitCaseResponse])
async def list_exit_cases(engine: Engine = Depends(get_engine)) -> list[ExitCaseResponse]:
    """Everyone currently going through exit formalities, oldest first."""
    rows = await asyncio.to_thread(engine.exits.list_in_process)
    return [ExitCaseResponse.from_view(row) for row in rows]


@router.post("/{person_id}/checklist", response_model=PersonExitResponse)
async def update_checklist(
    person_id: str,
    body: ChecklistUpdate,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    person = await asyncio.to_thread(engine.exits.set_checklist_item, actor, person_id, body.item, body.completed)
    return PersonExitResponse.from_model(person)


@router.post("/{person_id}/decision", response_model=PersonExitResponse)
async def set_deport_decision(
    person_id: str,
    body: DeportDecisionUpdate,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    person = await asyncio.to_thread(engine.exits.set_deport_decision, actor, person_id, body.deport_from_uae)
    return PersonExitResponse.from_model(person)


@router.post("/{person_id}/vehicle", response_model=PersonExitResponse)
async def assign_vehicle(
    person_id: str,
    body: VehicleAssignment,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    person = await asyncio.to_thread(
        engine.exits.assign_vehicle,
        actor,
        person_id,
        body.vehicle_number,
        body.driver_name,
        body.scheduled_pickup_time,
        body.flight_number,
        body.flight_time,
        body.expected_exit_date,
    )
    return PersonExitResponse.from_model(person)


@router.post("/{person_id}/driver-dispatched", response_model=PersonExitResponse)
async def mark_driver_dispatched(
    person_id: str,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    person = await asyncio.to_thread(engine.exits.mark_driver_dispatched, actor, person_id)
    return PersonExitResponse.from_model(person)


@router.post("/{person_id}/departure", response_model=PersonExitResponse)
async def confirm_departure(
    person_id: str,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    """Person dropped at the airport; closes their exit formalities."""
    person = await asyncio.to_thread(engine.exits.confirm_departure, actor, person_id)
    return PersonExitResponse.from_model(person)


@router.post("/{person_id}/complete", response_model=PersonExitResponse)
async def complete_formalities(
    person_id: str,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> PersonExitResponse:
    """Close exit formalities for a person who is staying in the country."""
    person = await asyncio.to_thread(engine.exits.complete_formalities, actor, person_id)
    return PersonExitResponse.from_model(person)
