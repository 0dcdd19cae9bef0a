"""
Transfer request state machine.

Defines the valid transitions between transfer request states. Pure module,
no storage access.
"""

from __future__ import annotations

from ..core.constants import TERMINAL_TRANSFER_STATUSES
from ..core.errors import InvalidTransitionError
from ..core.models import TransferRequest, TransferStatus

VALID_TRANSITIONS: dict[TransferStatus, frozenset[TransferStatus]] = {
    TransferStatus.PENDING_ALLOCATION: frozenset(
        {
            TransferStatus.BEDS_ALLOCATED,
            TransferStatus.ALLOCATION_REJECTED,
            TransferStatus.CANCELLED,
        }
    ),
    TransferStatus.BEDS_ALLOCATED: frozenset(
        {
            TransferStatus.APPROVED_FOR_DISPATCH,
            # pre-approved requests only, checked by the dispatch operation
            TransferStatus.TECHNICIANS_DISPATCHED,
            TransferStatus.ALLOCATION_REJECTED,
            TransferStatus.CANCELLED,
        }
    ),
    TransferStatus.APPROVED_FOR_DISPATCH: frozenset(
        {
            TransferStatus.TECHNICIANS_DISPATCHED,
            TransferStatus.CANCELLED,
        }
    ),
    TransferStatus.TECHNICIANS_DISPATCHED: frozenset(
        {
            TransferStatus.PARTIALLY_ARRIVED,
            TransferStatus.COMPLETED,
        }
    ),
    TransferStatus.PARTIALLY_ARRIVED: frozenset(
        {
            TransferStatus.PARTIALLY_ARRIVED,
            TransferStatus.COMPLETED,
        }
    ),
    # Terminal states
    TransferStatus.COMPLETED: frozenset(),
    TransferStatus.ALLOCATION_REJECTED: frozenset(),
    TransferStatus.CANCELLED: frozenset(),
}


def can_transition(current: TransferStatus, target: TransferStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, frozenset())


def validate_transition(request: TransferRequest, target: TransferStatus, action: str) -> None:
    """
    Validate a transfer request state transition.

    Args:
        request: The request about to change state
        target: Desired target state
        action: Operation name used in the error message

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition(request.status, target):
        raise InvalidTransitionError("transfer request", request.id, request.status.value, action)


def is_terminal(status: TransferStatus) -> bool:
    return status in TERMINAL_TRANSFER_STATUSES
