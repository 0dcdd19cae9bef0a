"""Error taxonomy for the transfer and exit lifecycle engine.

Every refusal names its reason so a caller can tell "you did something
wrong" (validation, conflict) apart from "this is stale or already handled"
(invalid transition). Nothing here is retried by the engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValidationReason(Enum):
    """Specific reasons a validation error can carry"""

    EMPTY_PERSON_LIST = "empty_person_list"
    DUPLICATE_PERSON = "duplicate_person"
    SAME_SOURCE_AND_TARGET = "same_source_and_target"
    UNKNOWN_CAMP = "unknown_camp"
    UNKNOWN_PERSON = "unknown_person"
    INCOMPLETE_ALLOCATION = "incomplete_allocation"
    UNEXPECTED_ALLOCATION = "unexpected_allocation"
    DUPLICATE_BED = "duplicate_bed"
    BED_NOT_IN_TARGET_CAMP = "bed_not_in_target_camp"
    BED_NOT_AVAILABLE = "bed_not_available"
    BED_NOT_RESERVED = "bed_not_reserved"
    MISSING_REJECTION_REASON = "missing_rejection_reason"
    MISSING_TERMINATION_REASON = "missing_termination_reason"
    EXIT_CHOICE_REQUIRED = "exit_choice_required"
    NOT_AN_EXIT_CASE = "not_an_exit_case"
    NO_CURRENT_CAMP = "no_current_camp"
    PERSON_NOT_IN_REQUEST = "person_not_in_request"
    PERSON_NOT_PENDING_ARRIVAL = "person_not_pending_arrival"
    UNKNOWN_CHECKLIST_ITEM = "unknown_checklist_item"
    CHECKLIST_INCOMPLETE = "checklist_incomplete"
    DEPORT_DECISION_NOT_SET = "deport_decision_not_set"
    NOT_DEPORTING = "not_deporting"
    DEPORTING_REQUIRES_DEPARTURE = "deporting_requires_departure"
    MISSING_VEHICLE_INFO = "missing_vehicle_info"


class TransferEngineError(Exception):
    """Base exception for engine errors."""

    code = "engine_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": str(self)}


class ValidationError(TransferEngineError):
    """Raised when an operation's input or preconditions are invalid. No mutation occurred."""

    code = "validation_error"

    def __init__(self, reason: ValidationReason, message: str):
        self.reason = reason
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "reason": self.reason.value}


@dataclass(frozen=True)
class AllocationConflict:
    """One person already claimed by another active transfer request"""

    person_id: str
    request_id: str
    target_camp_id: str
    status: str


class DuplicateAllocationError(TransferEngineError):
    """Raised when persons are already claimed by other active requests."""

    code = "duplicate_allocation"

    def __init__(self, conflicts: list[AllocationConflict]):
        self.conflicts = conflicts
        people = ", ".join(f"{c.person_id} -> camp {c.target_camp_id} (request {c.request_id})" for c in conflicts)
        super().__init__(f"Duplicate allocations detected: {people}")

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "conflicts": [
                {
                    "person_id": c.person_id,
                    "request_id": c.request_id,
                    "target_camp_id": c.target_camp_id,
                    "status": c.status,
                }
                for c in self.conflicts
            ],
        }


class InvalidTransitionError(TransferEngineError):
    """Raised when an action is attempted from a state that does not permit it."""

    code = "invalid_transition"

    def __init__(self, entity: str, entity_id: str | None, current_state: str, action: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current_state = current_state
        self.action = action
        super().__init__(f"Cannot {action} {entity} {entity_id}: current state is '{current_state}'")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "current_state": self.current_state, "action": self.action}


class ConfigurationError(TransferEngineError):
    """Raised when required engine configuration is absent or inconsistent."""

    code = "configuration_error"


class ExitCampNotFoundError(ConfigurationError):
    """Raised when no Exit Camp can be resolved."""

    code = "exit_camp_not_found"


class AuthorizationError(TransferEngineError):
    """Raised when the actor may not perform the operation."""

    code = "forbidden"

    def __init__(self, actor_id: str | None, permission: str):
        self.actor_id = actor_id
        self.permission = permission
        super().__init__(f"Actor {actor_id} lacks permission '{permission}'")


class NotFoundError(TransferEngineError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: str | None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StoreError(TransferEngineError):
    """Raised when the storage collaborator fails a read or write."""

    code = "store_error"


class PartialTransitionError(TransferEngineError):
    """Raised when a multi-record transition failed part way through.

    rolled_back is True when every applied write was reverted; otherwise
    unreverted lists the "collection/id" records left in a mixed state.
    Callers must retry the transition rather than assume success.
    """

    code = "transition_partially_applied"

    def __init__(
        self,
        label: str,
        rolled_back: bool,
        unreverted: list[str] | None = None,
        cause: BaseException | None = None,
    ):
        self.label = label
        self.rolled_back = rolled_back
        self.unreverted = unreverted or []
        self.cause = cause
        if rolled_back:
            message = f"{label} failed and was rolled back: {cause}"
        else:
            message = f"{label} failed and left records in a mixed state {self.unreverted}: {cause}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "rolled_back": self.rolled_back, "unreverted": self.unreverted}
