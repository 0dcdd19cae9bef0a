"""
Pydantic schemas for the dashboard endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel


class DashboardSummaryResponse(BaseModel):
    transfers_by_status: dict[str, int]
    pending_allocation: int
    awaiting_dispatch: int
    awaiting_arrival: int
    in_exit_formalities: int
    overdue_exits: int
