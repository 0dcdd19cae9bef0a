"""
Relocation - Transfer & Exit Lifecycle Engine for camp personnel.

This package contains:
- core: Domain models, error taxonomy, storage interfaces, capability policy
- engine: Transfer state machine, duplicate-allocation guard, disciplinary
  exit trigger, exit formalities tracker
- data: PocketBase repositories and the unit of work
- config: Engine configuration loader
"""

from relocation.core.errors import (
    AuthorizationError,
    ConfigurationError,
    DuplicateAllocationError,
    ExitCampNotFoundError,
    InvalidTransitionError,
    NotFoundError,
    PartialTransitionError,
    StoreError,
    TransferEngineError,
    ValidationError,
)
from relocation.core.policy import Actor, Permission, TransitionPolicy
from relocation.engine import Engine, build_engine

__all__ = [
    "Actor",
    "AuthorizationError",
    "ConfigurationError",
    "DuplicateAllocationError",
    "Engine",
    "ExitCampNotFoundError",
    "InvalidTransitionError",
    "NotFoundError",
    "PartialTransitionError",
    "Permission",
    "StoreError",
    "TransferEngineError",
    "TransitionPolicy",
    "ValidationError",
    "build_engine",
]
