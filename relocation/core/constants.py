"""Constants shared by the transfer and exit lifecycle engine."""

from __future__ import annotations

from .models import CampType, MovementReason, TransferStatus

# Requests that hold a claim on their persons (Duplicate-Allocation Guard scope)
ACTIVE_TRANSFER_STATUSES: frozenset[TransferStatus] = frozenset(
    {
        TransferStatus.BEDS_ALLOCATED,
        TransferStatus.APPROVED_FOR_DISPATCH,
        TransferStatus.TECHNICIANS_DISPATCHED,
        TransferStatus.PARTIALLY_ARRIVED,
    }
)

TERMINAL_TRANSFER_STATUSES: frozenset[TransferStatus] = frozenset(
    {
        TransferStatus.COMPLETED,
        TransferStatus.ALLOCATION_REJECTED,
        TransferStatus.CANCELLED,
    }
)

# Onboarding moves out of an induction camp are pre-approved
PRE_APPROVED_REASON = MovementReason.ONBOARDING_TRANSFER
PRE_APPROVED_SOURCE_TYPES: frozenset[CampType] = frozenset({CampType.INDUCTION_CAMP})
PRE_APPROVED_TARGET_TYPES: frozenset[CampType] = frozenset({CampType.REGULAR_CAMP, CampType.EXIT_CAMP})

# Legacy Exit Camp match: both tokens must appear in name or code
LEGACY_EXIT_CAMP_TOKENS: tuple[str, ...] = ("sonapur", "exit")

EXIT_CASE_NOTE = "Auto-generated from Disciplinary Action (Resignation/Termination)"
