"""Core domain models for the transfer and exit lifecycle engine.

These models represent camp residency as the engine sees it and are
independent of the PocketBase record layout (repositories map between them)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

# Exit formalities checklist, in display order
CHECKLIST_ITEMS: tuple[str, ...] = (
    "toolbox_returned",
    "id_card_returned",
    "penalty_cleared",
    "ticket_booked",
    "final_settlement_processed",
    "medical_cleared",
    "exit_visa_obtained",
    "handover_completed",
    "personal_belongings_cleared",
)


class PersonKind(Enum):
    """The two personnel variants tracked for camp residency"""

    TECHNICIAN = "technician"
    EXTERNAL = "external"


class PersonStatus(Enum):
    """Residency statuses the engine writes or inspects.

    Note: person records can carry other statuses (set by leave management,
    HR and so on); those are kept as raw strings and passed through."""

    ACTIVE = "active"
    PENDING_ARRIVAL = "pending_arrival"
    PENDING_EXIT = "pending_exit"
    EXITED_COUNTRY = "exited_country"
    DEPARTED = "departed"
    TERMINATED = "terminated"
    ON_LEAVE = "on_leave"


class BedStatus(Enum):
    """Availability of a single bed"""

    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"


class CampType(Enum):
    """Camp type tag"""

    REGULAR_CAMP = "regular_camp"
    INDUCTION_CAMP = "induction_camp"
    EXIT_CAMP = "exit_camp"


class TransferStatus(Enum):
    """Transfer request lifecycle states"""

    PENDING_ALLOCATION = "pending_allocation"
    BEDS_ALLOCATED = "beds_allocated"
    APPROVED_FOR_DISPATCH = "approved_for_dispatch"
    TECHNICIANS_DISPATCHED = "technicians_dispatched"
    PARTIALLY_ARRIVED = "partially_arrived"
    COMPLETED = "completed"
    ALLOCATION_REJECTED = "allocation_rejected"
    CANCELLED = "cancelled"


class MovementReason(Enum):
    """Reason recorded on a transfer request"""

    ONBOARDING_TRANSFER = "onboarding_transfer"
    PROJECT_TRANSFER = "project_transfer"
    CAMP_CLOSURE = "camp_closure"
    CAMP_ENVIRONMENT = "camp_environment"
    ROOMMATE_ISSUE = "roommate_issue"
    PERSONAL_REQUEST = "personal_request"
    SKILL_REQUIREMENT = "skill_requirement"
    URGENT_REQUIREMENT = "urgent_requirement"
    DISCIPLINARY = "disciplinary"
    EXIT_CASE = "exit_case"
    OTHER = "other"


class ExitActionKind(Enum):
    """Disciplinary action type, resolved once when the type record is loaded"""

    TERMINATION = "termination"
    RESIGNATION = "resignation"
    OTHER = "other"


def resolve_exit_kind(*labels: str | None) -> ExitActionKind:
    """Classify a disciplinary action from its type name and/or legacy code.

    The first label that matches case-insensitively wins, so pass the
    normalized type name before the legacy code.
    """
    for label in labels:
        normalized = (label or "").strip().lower()
        if normalized == ExitActionKind.TERMINATION.value:
            return ExitActionKind.TERMINATION
        if normalized == ExitActionKind.RESIGNATION.value:
            return ExitActionKind.RESIGNATION
    return ExitActionKind.OTHER


class ExitProcessChoice(Enum):
    """How an exit case reaches the Exit Camp"""

    CAMP_TRANSFER = "camp_transfer"
    DIRECT_DEPORT = "direct_deport"


class ExitProcessStatus(Enum):
    """Exit formalities progress"""

    IN_PROCESS = "in_process"
    OVERDUE = "overdue"
    FORMALITIES_COMPLETED = "formalities_completed"


class DropStatus(Enum):
    """Airport drop logistics for a deporting person"""

    NOT_SCHEDULED = "not_scheduled"
    SCHEDULED = "scheduled"
    DRIVER_DISPATCHED = "driver_dispatched"
    DROPPED_AT_AIRPORT = "dropped_at_airport"
    CANCELLED = "cancelled"


@dataclass
class Camp:
    """A camp that holds beds"""

    id: str
    name: str
    code: str = ""
    camp_type: CampType = CampType.REGULAR_CAMP


@dataclass
class Bed:
    """A single bed and its reservation/occupancy state.

    Exactly one of these holds:
    - AVAILABLE: reserved_for and occupant_id both unset
    - RESERVED: reserved_for set
    - OCCUPIED: occupant_id set
    """

    id: str
    camp_id: str
    bed_number: str = ""
    status: BedStatus = BedStatus.AVAILABLE
    reserved_for: str | None = None
    reserved_until: date | None = None
    occupant_id: str | None = None
    occupant_kind: PersonKind | None = None

    def reserve(self, person_id: str) -> None:
        self.status = BedStatus.RESERVED
        self.reserved_for = person_id
        self.occupant_id = None
        self.occupant_kind = None

    def occupy(self, person_id: str, kind: PersonKind) -> None:
        self.status = BedStatus.OCCUPIED
        self.occupant_id = person_id
        self.occupant_kind = kind
        self.reserved_for = None
        self.reserved_until = None

    def release(self) -> None:
        self.status = BedStatus.AVAILABLE
        self.reserved_for = None
        self.reserved_until = None
        self.occupant_id = None
        self.occupant_kind = None


@dataclass
class ExitFormalities:
    """Exit formalities fields carried on a person while at the Exit Camp"""

    exit_camp_id: str | None = None
    start_date: date | None = None
    checklist: dict[str, bool] = field(default_factory=lambda: dict.fromkeys(CHECKLIST_ITEMS, False))
    deport_from_uae: bool | None = None
    flight_number: str = ""
    flight_time: str = ""
    expected_exit_date: date | None = None
    vehicle_number: str = ""
    driver_name: str = ""
    scheduled_pickup_time: str = ""
    drop_status: DropStatus = DropStatus.NOT_SCHEDULED
    process_status: ExitProcessStatus | None = None
    actual_exit_date: date | None = None
    completion_date: date | None = None

    @property
    def completed_count(self) -> int:
        return sum(1 for item in CHECKLIST_ITEMS if self.checklist.get(item) is True)

    @property
    def all_completed(self) -> bool:
        return self.completed_count == len(CHECKLIST_ITEMS)

    def days_in_process(self, today: date) -> int:
        """Whole days since the exit process started (0 when not started)."""
        if self.start_date is None:
            return 0
        return (today - self.start_date).days


@dataclass
class Person:
    """A technician or external contractor tracked for camp residency"""

    id: str
    kind: PersonKind
    full_name: str = ""
    employee_id: str = ""  # company name for external personnel
    camp_id: str | None = None
    bed_id: str | None = None
    status: str = PersonStatus.ACTIVE.value
    actual_arrival_date: date | None = None
    last_transfer_date: date | None = None
    exit: ExitFormalities = field(default_factory=ExitFormalities)

    def has_status(self, status: PersonStatus) -> bool:
        return self.status == status.value


@dataclass
class TransferRequest:
    """A planned relocation of one or more persons between two camps"""

    id: str | None
    source_camp_id: str
    target_camp_id: str
    request_date: date | None = None
    reason: MovementReason = MovementReason.OTHER
    technician_ids: list[str] = field(default_factory=list)
    external_personnel_ids: list[str] = field(default_factory=list)
    allocated_beds: dict[str, str] = field(default_factory=dict)  # person id -> bed id
    status: TransferStatus = TransferStatus.PENDING_ALLOCATION
    notes: str = ""
    requested_by: str | None = None
    allocation_confirmed_by: str | None = None
    allocation_confirmed_date: date | None = None
    approved_by: str | None = None
    approved_date: date | None = None
    rejection_reason: str | None = None
    rejected_by: str | None = None
    rejected_date: date | None = None
    dispatched_by: str | None = None
    dispatch_date: date | None = None
    cancelled_by: str | None = None
    cancelled_date: date | None = None
    cancellation_reason: str | None = None

    @property
    def person_ids(self) -> list[str]:
        return [*self.technician_ids, *self.external_personnel_ids]

    def kind_of(self, person_id: str) -> PersonKind | None:
        if person_id in self.technician_ids:
            return PersonKind.TECHNICIAN
        if person_id in self.external_personnel_ids:
            return PersonKind.EXTERNAL
        return None

    def includes(self, person_id: str) -> bool:
        return self.kind_of(person_id) is not None


@dataclass
class DisciplinaryActionType:
    """A configured disciplinary action type"""

    id: str
    name: str
    code: str = ""
    kind: ExitActionKind = ExitActionKind.OTHER


@dataclass
class DisciplinaryAction:
    """A recorded disciplinary action against a technician"""

    id: str | None
    person_id: str
    action_type_id: str | None = None
    legacy_action_type: str = ""  # pre-normalization code field
    kind: ExitActionKind = ExitActionKind.OTHER
    action_date: date | None = None
    violation: str = ""
    termination_reason: str | None = None
    exit_process_choice: ExitProcessChoice | None = None
    follow_up_required: bool = False
    notes: str = ""


@dataclass
class TransferLog:
    """History row written when a person arrives at a camp"""

    id: str | None
    person_id: str
    person_kind: PersonKind
    transfer_request_id: str | None
    from_camp_id: str | None
    to_camp_id: str
    from_bed_id: str | None = None
    to_bed_id: str | None = None
    transfer_date: date | None = None
    reason: MovementReason = MovementReason.OTHER
    transferred_by: str | None = None
    notes: str = ""
