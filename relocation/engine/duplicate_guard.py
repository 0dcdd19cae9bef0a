"""Duplicate-allocation guard.

A person may be claimed by at most one active transfer request. The guard is
run at allocation and again at dispatch, as the last check before the write,
because approval is asynchronous and another request can claim the same
person in between.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.constants import ACTIVE_TRANSFER_STATUSES
from ..core.errors import AllocationConflict, DuplicateAllocationError
from ..core.interfaces import TransferRequestStore
from ..core.models import TransferRequest

logger = logging.getLogger(__name__)


def find_conflicts(
    requests: Iterable[TransferRequest],
    person_ids: Iterable[str],
    exclude_request_id: str | None = None,
) -> list[AllocationConflict]:
    """Every (person, other active request) pair that claims one of person_ids.

    Pure: no I/O, no mutation. Requests outside the active statuses and the
    request identified by exclude_request_id are ignored.
    """
    wanted = list(dict.fromkeys(person_ids))
    conflicts: list[AllocationConflict] = []

    for other in requests:
        if other.status not in ACTIVE_TRANSFER_STATUSES:
            continue
        if exclude_request_id is not None and other.id == exclude_request_id:
            continue
        claimed = set(other.person_ids)
        for person_id in wanted:
            if person_id in claimed:
                conflicts.append(
                    AllocationConflict(
                        person_id=person_id,
                        request_id=str(other.id),
                        target_camp_id=other.target_camp_id,
                        status=other.status.value,
                    )
                )

    return conflicts


class DuplicateAllocationGuard:
    """Runs find_conflicts against the live set of active requests."""

    def __init__(self, transfers: TransferRequestStore):
        self.transfers = transfers

    def check(self, request: TransferRequest) -> None:
        """Raise DuplicateAllocationError listing every conflict for the request's persons."""
        active = self.transfers.list_by_status(ACTIVE_TRANSFER_STATUSES)
        conflicts = find_conflicts(active, request.person_ids, exclude_request_id=request.id)
        if conflicts:
            logger.warning(
                f"Duplicate allocation for request {request.id}: "
                f"{len(conflicts)} conflict(s) across {len({c.request_id for c in conflicts})} request(s)"
            )
            raise DuplicateAllocationError(conflicts)
