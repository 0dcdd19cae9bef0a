"""
Transfers Router - transfer request lifecycle endpoints.

Each endpoint maps to one engine operation; refusals are turned into HTTP
errors by the handlers in api.errors.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from relocation.core.models import TransferStatus
from relocation.core.policy import Actor
from relocation.engine import Engine

from ..dependencies import get_current_actor, get_engine
from ..schemas.transfers import (
    ArrivalConfirmation,
    BedAllocationRequest,
    CancelTransferRequest,
    RejectAllocationRequest,
    TransferCreate,
    TransferResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transfers", tags=["transfers"])


@router.get("", response_model=list[TransferResponse])
async def list_transfers(
    status: list[TransferStatus] | None = Query(default=None),
    engine: Engine = Depends(get_engine),
) -> list[TransferResponse]:
    """List transfer requests, optionally filtered by status."""
    requests = await asyncio.to_thread(engine.transfers.list_requests, status)
    return [TransferResponse.from_model(r) for r in requests]


@router.post("", response_model=TransferResponse, status_code=201)
async def create_transfer(
    body: TransferCreate,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    request = await asyncio.to_thread(
        engine.transfers.create_request,
        actor,
        body.source_camp_id,
        body.target_camp_id,
        body.technician_ids,
        body.external_personnel_ids,
        body.reason_for_movement,
        body.notes,
        body.request_date,
    )
    return TransferResponse.from_model(request)


@router.get("/{request_id}", response_model=TransferResponse)
async def get_transfer(request_id: str, engine: Engine = Depends(get_engine)) -> TransferResponse:
    request = await asyncio.to_thread(engine.transfers.get_request, request_id)
    return TransferResponse.from_model(request)


@router.post("/{request_id}/allocate", response_model=TransferResponse)
async def allocate_beds(
    request_id: str,
    body: BedAllocationRequest,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    """Reserve target-camp beds for every person on the request."""
    request = await asyncio.to_thread(engine.transfers.allocate_beds, actor, request_id, body.allocations)
    return TransferResponse.from_model(request)


@router.post("/{request_id}/approve", response_model=TransferResponse)
async def approve_transfer(
    request_id: str,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    request = await asyncio.to_thread(engine.transfers.approve_for_dispatch, actor, request_id)
    return TransferResponse.from_model(request)


@router.post("/{request_id}/reject", response_model=TransferResponse)
async def reject_transfer(
    request_id: str,
    body: RejectAllocationRequest,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    request = await asyncio.to_thread(engine.transfers.reject_allocation, actor, request_id, body.rejection_reason)
    return TransferResponse.from_model(request)


@router.post("/{request_id}/dispatch", response_model=TransferResponse)
async def dispatch_transfer(
    request_id: str,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    request = await asyncio.to_thread(engine.transfers.dispatch, actor, request_id)
    return TransferResponse.from_model(request)


@router.post("/{request_id}/arrivals", response_model=TransferResponse)
async def confirm_arrival(
    request_id: str,
    body: ArrivalConfirmation,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    """Confirm one person's arrival at the target camp."""
    request = await asyncio.to_thread(
        engine.transfers.confirm_arrival, actor, request_id, body.person_id, body.arrival_date
    )
    return TransferResponse.from_model(request)


@router.post("/{request_id}/cancel", response_model=TransferResponse)
async def cancel_transfer(
    request_id: str,
    body: CancelTransferRequest,
    engine: Engine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
) -> TransferResponse:
    request = await asyncio.to_thread(engine.transfers.cancel_request, actor, request_id, body.reason)
    return TransferResponse.from_model(request)
