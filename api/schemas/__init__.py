"""
Pydantic schemas for the Relocation API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .dashboard import DashboardSummaryResponse
from .disciplinary import (
    DisciplinaryActionCreate,
    DisciplinaryActionResponse,
    InitiateExitRequest,
    TriggerResultResponse,
)
from .exit_formalities import (
    ChecklistUpdate,
    DeportDecisionUpdate,
    ExitCaseResponse,
    PersonExitResponse,
    VehicleAssignment,
)
from .transfers import (
    ArrivalConfirmation,
    BedAllocationRequest,
    CancelTransferRequest,
    RejectAllocationRequest,
    TransferCreate,
    TransferResponse,
)

__all__ = [
    "ArrivalConfirmation",
    "BedAllocationRequest",
    "CancelTransferRequest",
    "ChecklistUpdate",
    "DashboardSummaryResponse",
    "DeportDecisionUpdate",
    "DisciplinaryActionCreate",
    "DisciplinaryActionResponse",
    "ExitCaseResponse",
    "InitiateExitRequest",
    "PersonExitResponse",
    "RejectAllocationRequest",
    "TransferCreate",
    "TransferResponse",
    "TriggerResultResponse",
    "VehicleAssignment",
]
