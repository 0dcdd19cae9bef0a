"""Transfer & Exit Lifecycle Engine.

Usage:
    engine = build_engine(repos, config)
    engine.transfers.allocate_beds(actor, request_id, {"tech1": "bed9"})
    engine.exits.set_checklist_item(actor, "tech1", "toolbox_returned", True)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from ..core.interfaces import Repositories
from ..core.policy import TransitionPolicy
from .dashboard import DashboardService, DashboardSummary
from .disciplinary_trigger import DisciplinaryExitTrigger, TriggerOutcome, TriggerResult
from .duplicate_guard import DuplicateAllocationGuard, find_conflicts
from .exit_camp import EngineConfig, ExitCampResolver
from .exit_formalities import ExitCaseView, ExitFormalitiesService, derive_process_status
from .transfer_service import TransferService


@dataclass
class Engine:
    """Every engine service wired over one set of repositories"""

    transfers: TransferService
    disciplinary: DisciplinaryExitTrigger
    exits: ExitFormalitiesService
    dashboard: DashboardService
    exit_camps: ExitCampResolver


def build_engine(
    repos: Repositories,
    config: EngineConfig,
    policy: TransitionPolicy | None = None,
    today: Callable[[], date] = date.today,
) -> Engine:
    policy = policy or TransitionPolicy()
    exit_camps = ExitCampResolver(repos.camps, config)
    transfers = TransferService(repos, exit_camps, policy=policy, today=today)
    exits = ExitFormalitiesService(repos, exit_camps, config, policy=policy, today=today)
    return Engine(
        transfers=transfers,
        disciplinary=DisciplinaryExitTrigger(repos, exit_camps, policy=policy, today=today),
        exits=exits,
        dashboard=DashboardService(transfers, exits),
        exit_camps=exit_camps,
    )


__all__ = [
    "DashboardService",
    "DashboardSummary",
    "DisciplinaryExitTrigger",
    "DuplicateAllocationGuard",
    "Engine",
    "EngineConfig",
    "ExitCampResolver",
    "ExitCaseView",
    "ExitFormalitiesService",
    "TransferService",
    "TriggerOutcome",
    "TriggerResult",
    "build_engine",
    "derive_process_status",
    "find_conflicts",
]
