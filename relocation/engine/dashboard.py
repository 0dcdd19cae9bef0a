"""Counts a presentation layer can alert on."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..core.models import TransferStatus
from .exit_formalities import ExitFormalitiesService
from .transfer_service import TransferService

logger = logging.getLogger(__name__)


@dataclass
class DashboardSummary:
    transfers_by_status: dict[str, int] = field(default_factory=dict)
    pending_allocation: int = 0
    awaiting_dispatch: int = 0
    awaiting_arrival: int = 0
    in_exit_formalities: int = 0
    overdue_exits: int = 0


class DashboardService:
    """Builds the alerting read model from the transfer and exit services."""

    def __init__(self, transfers: TransferService, exits: ExitFormalitiesService):
        self.transfers = transfers
        self.exits = exits

    def summary(self) -> DashboardSummary:
        counts = {status.value: 0 for status in TransferStatus}
        awaiting_dispatch = 0
        for request in self.transfers.repos.transfers.list_all():
            counts[request.status.value] += 1
            if request.status == TransferStatus.APPROVED_FOR_DISPATCH:
                awaiting_dispatch += 1
            elif request.status == TransferStatus.BEDS_ALLOCATED and self.transfers.is_pre_approved(request):
                awaiting_dispatch += 1

        exit_rows = self.exits.list_in_process()
        summary = DashboardSummary(
            transfers_by_status=counts,
            pending_allocation=counts[TransferStatus.PENDING_ALLOCATION.value],
            awaiting_dispatch=awaiting_dispatch,
            awaiting_arrival=counts[TransferStatus.TECHNICIANS_DISPATCHED.value]
            + counts[TransferStatus.PARTIALLY_ARRIVED.value],
            in_exit_formalities=len(exit_rows),
            overdue_exits=sum(1 for row in exit_rows if row.is_overdue),
        )
        logger.debug(f"Dashboard summary: {summary}")
        return summary
