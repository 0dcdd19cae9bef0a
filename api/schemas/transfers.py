"""
Pydantic schemas for transfer request endpoints.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from relocation.core.models import MovementReason, TransferRequest


class TransferCreate(BaseModel):
    """Request model for creating a transfer request."""

    source_camp_id: str
    target_camp_id: str
    technician_ids: list[str] = Field(default_factory=list)
    external_personnel_ids: list[str] = Field(default_factory=list)
    reason_for_movement: MovementReason = MovementReason.OTHER
    notes: str = ""
    request_date: date | None = None


class BedAllocationRequest(BaseModel):
    """Person id -> bed id for every person on the request."""

    allocations: dict[str, str]


class RejectAllocationRequest(BaseModel):
    rejection_reason: str


class CancelTransferRequest(BaseModel):
    reason: str = ""


class ArrivalConfirmation(BaseModel):
    person_id: str
    arrival_date: date | None = None


class TransferResponse(BaseModel):
    """Response model for transfer requests."""

    id: str
    source_camp_id: str
    target_camp_id: str
    request_date: date | None = None
    reason_for_movement: str
    technician_ids: list[str]
    external_personnel_ids: list[str]
    allocated_beds: dict[str, str]
    status: str
    notes: str = ""
    rejection_reason: str | None = None
    rejected_by: str | None = None
    rejected_date: date | None = None
    approved_by: str | None = None
    dispatched_by: str | None = None
    dispatch_date: date | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None

    @classmethod
    def from_model(cls, request: TransferRequest) -> TransferResponse:
        return cls(
            id=str(request.id),
            source_camp_id=request.source_camp_id,
            target_camp_id=request.target_camp_id,
            request_date=request.request_date,
            reason_for_movement=request.reason.value,
            technician_ids=request.technician_ids,
            external_personnel_ids=request.external_personnel_ids,
            allocated_beds=request.allocated_beds,
            status=request.status.value,
            notes=request.notes,
            rejection_reason=request.rejection_reason,
            rejected_by=request.rejected_by,
            rejected_date=request.rejected_date,
            approved_by=request.approved_by,
            dispatched_by=request.dispatched_by,
            dispatch_date=request.dispatch_date,
            cancelled_by=request.cancelled_by,
            cancellation_reason=request.cancellation_reason,
        )
