"""
Dashboard Router - counts for alerting.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict

from fastapi import APIRouter, Depends

from relocation.engine import Engine

from ..dependencies import get_engine
from ..schemas.dashboard import DashboardSummaryResponse

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_summary(engine: Engine = Depends(get_engine)) -> DashboardSummaryResponse:
    summary = await asyncio.to_thread(engine.dashboard.summary)
    return DashboardSummaryResponse(**asdict(summary))
