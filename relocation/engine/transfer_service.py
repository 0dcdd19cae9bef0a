"""
TransferService - the transfer request lifecycle.

Every operation validates fully before touching anything, then applies all of
its record changes through one UnitOfWork. A refused operation leaves no
trace; a failed commit is compensated and reported as PartialTransitionError.

Lifecycle:
    pending_allocation -> beds_allocated -> approved_for_dispatch
        -> technicians_dispatched -> partially_arrived -> completed
    beds_allocated / pending_allocation -> allocation_rejected
    any pre-dispatch state -> cancelled
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date

from ..core.constants import (
    PRE_APPROVED_REASON,
    PRE_APPROVED_SOURCE_TYPES,
    PRE_APPROVED_TARGET_TYPES,
)
from ..core.errors import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    ValidationReason,
)
from ..core.interfaces import Repositories
from ..core.models import (
    Bed,
    BedStatus,
    ExitFormalities,
    ExitProcessStatus,
    MovementReason,
    Person,
    PersonKind,
    PersonStatus,
    TransferLog,
    TransferRequest,
    TransferStatus,
)
from ..core.policy import Actor, Permission, TransitionPolicy
from ..data.unit_of_work import UnitOfWork
from .duplicate_guard import DuplicateAllocationGuard
from .exit_camp import ExitCampResolver
from .transfer_machine import validate_transition

logger = logging.getLogger(__name__)


class TransferService:
    """Drives transfer requests through their lifecycle."""

    def __init__(
        self,
        repos: Repositories,
        exit_camps: ExitCampResolver,
        policy: TransitionPolicy | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.repos = repos
        self.exit_camps = exit_camps
        self.policy = policy or TransitionPolicy()
        self.guard = DuplicateAllocationGuard(repos.transfers)
        self.today = today

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def build_request(
        self,
        source_camp_id: str,
        target_camp_id: str,
        technician_ids: Iterable[str] = (),
        external_personnel_ids: Iterable[str] = (),
        reason: MovementReason = MovementReason.OTHER,
        notes: str = "",
        requested_by: str | None = None,
        request_date: date | None = None,
    ) -> TransferRequest:
        """Validate and build a new pending_allocation request without storing it."""
        technicians = list(technician_ids)
        externals = list(external_personnel_ids)
        everyone = technicians + externals

        if not everyone:
            raise ValidationError(ValidationReason.EMPTY_PERSON_LIST, "A transfer request needs at least one person")
        if len(set(everyone)) != len(everyone):
            raise ValidationError(ValidationReason.DUPLICATE_PERSON, "A person is listed more than once")
        if source_camp_id == target_camp_id:
            raise ValidationError(
                ValidationReason.SAME_SOURCE_AND_TARGET, "Source and target camp must be different"
            )
        for camp_id in (source_camp_id, target_camp_id):
            if not camp_id or self.repos.camps.find_by_id(camp_id) is None:
                raise ValidationError(ValidationReason.UNKNOWN_CAMP, f"Camp {camp_id!r} does not exist")

        for kind, ids in ((PersonKind.TECHNICIAN, technicians), (PersonKind.EXTERNAL, externals)):
            for person_id in ids:
                if self.repos.persons.find(kind, person_id) is None:
                    raise ValidationError(ValidationReason.UNKNOWN_PERSON, f"{kind.value} {person_id} does not exist")

        return TransferRequest(
            id=None,
            source_camp_id=source_camp_id,
            target_camp_id=target_camp_id,
            request_date=request_date or self.today(),
            reason=reason,
            technician_ids=technicians,
            external_personnel_ids=externals,
            status=TransferStatus.PENDING_ALLOCATION,
            notes=notes,
            requested_by=requested_by,
        )

    def create_request(
        self,
        actor: Actor,
        source_camp_id: str,
        target_camp_id: str,
        technician_ids: Iterable[str] = (),
        external_personnel_ids: Iterable[str] = (),
        reason: MovementReason = MovementReason.OTHER,
        notes: str = "",
        request_date: date | None = None,
    ) -> TransferRequest:
        """Create a transfer request in pending_allocation."""
        self.policy.require(actor, Permission.CREATE_TRANSFER)

        request = self.build_request(
            source_camp_id,
            target_camp_id,
            technician_ids,
            external_personnel_ids,
            reason=reason,
            notes=notes,
            requested_by=actor.id,
            request_date=request_date,
        )
        with UnitOfWork("create transfer request") as uow:
            uow.add(self.repos.transfers, request)

        logger.info(
            f"Transfer request {request.id} created: {len(request.person_ids)} person(s) "
            f"{source_camp_id} -> {target_camp_id} ({reason.value})"
        )
        return request

    # ------------------------------------------------------------------
    # Allocation and approval
    # ------------------------------------------------------------------

    def allocate_beds(self, actor: Actor, request_id: str, allocations: dict[str, str]) -> TransferRequest:
        """Reserve one target-camp bed per person: pending_allocation -> beds_allocated.

        Args:
            allocations: person id -> bed id, covering exactly the request's persons
        """
        self.policy.require(actor, Permission.ALLOCATE_BEDS)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.BEDS_ALLOCATED, "allocate beds for")

        self._check_allocation_keys(request, allocations)
        beds = self._load_available_beds(request, allocations)

        # Last check before the write
        self.guard.check(request)

        with UnitOfWork(f"allocate beds for transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            for person_id, bed in beds.items():
                uow.track(self.repos.beds, bed)
                bed.reserve(person_id)
            request.allocated_beds = {person_id: bed.id for person_id, bed in beds.items()}
            request.status = TransferStatus.BEDS_ALLOCATED
            request.allocation_confirmed_by = actor.id
            request.allocation_confirmed_date = self.today()

        logger.info(f"Transfer request {request.id} -> beds_allocated ({len(beds)} bed(s) reserved)")
        return request

    def approve_for_dispatch(self, actor: Actor, request_id: str) -> TransferRequest:
        """beds_allocated -> approved_for_dispatch"""
        self.policy.require(actor, Permission.APPROVE_TRANSFER)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.APPROVED_FOR_DISPATCH, "approve")

        with UnitOfWork(f"approve transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            request.status = TransferStatus.APPROVED_FOR_DISPATCH
            request.approved_by = actor.id
            request.approved_date = self.today()

        logger.info(f"Transfer request {request.id} -> approved_for_dispatch by {actor.id}")
        return request

    def reject_allocation(self, actor: Actor, request_id: str, reason: str) -> TransferRequest:
        """Reject a request and release any beds reserved for it."""
        self.policy.require(actor, Permission.APPROVE_TRANSFER)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.ALLOCATION_REJECTED, "reject")

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError(ValidationReason.MISSING_REJECTION_REASON, "A rejection reason is required")

        beds = self._reserved_beds_of(request)

        with UnitOfWork(f"reject transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            for bed in beds:
                uow.track(self.repos.beds, bed)
                bed.release()
            request.status = TransferStatus.ALLOCATION_REJECTED
            request.rejection_reason = reason
            request.rejected_by = actor.id
            request.rejected_date = self.today()

        logger.info(f"Transfer request {request.id} -> allocation_rejected ({len(beds)} bed(s) released)")
        return request

    def cancel_request(self, actor: Actor, request_id: str, reason: str = "") -> TransferRequest:
        """Administrative cancel from any pre-dispatch state; releases reserved beds."""
        self.policy.require(actor, Permission.CANCEL_TRANSFER)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.CANCELLED, "cancel")

        beds = self._reserved_beds_of(request)

        with UnitOfWork(f"cancel transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            for bed in beds:
                uow.track(self.repos.beds, bed)
                bed.release()
            request.status = TransferStatus.CANCELLED
            request.cancelled_by = actor.id
            request.cancelled_date = self.today()
            request.cancellation_reason = (reason or "").strip() or None

        logger.info(f"Transfer request {request.id} -> cancelled ({len(beds)} bed(s) released)")
        return request

    # ------------------------------------------------------------------
    # Dispatch and arrival
    # ------------------------------------------------------------------

    def is_pre_approved(self, request: TransferRequest) -> bool:
        """Onboarding moves from an induction camp skip the approval gate."""
        if request.reason != PRE_APPROVED_REASON:
            return False
        source = self.repos.camps.find_by_id(request.source_camp_id)
        target = self.repos.camps.find_by_id(request.target_camp_id)
        if source is None or target is None:
            return False
        return source.camp_type in PRE_APPROVED_SOURCE_TYPES and target.camp_type in PRE_APPROVED_TARGET_TYPES

    def dispatch(self, actor: Actor, request_id: str) -> TransferRequest:
        """Send every person to the target camp: -> technicians_dispatched.

        Persons move to the target camp and their allocated bed with status
        pending_arrival. Allocated beds stay reserved until arrival; the bed
        each person leaves at the source camp is released.
        """
        self.policy.require(actor, Permission.DISPATCH_TRANSFER)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.TECHNICIANS_DISPATCHED, "dispatch")
        if request.status == TransferStatus.BEDS_ALLOCATED and not self.is_pre_approved(request):
            raise InvalidTransitionError("transfer request", request.id, request.status.value, "dispatch unapproved")

        missing = [pid for pid in request.person_ids if pid not in request.allocated_beds]
        if missing:
            raise ValidationError(
                ValidationReason.INCOMPLETE_ALLOCATION, f"No bed allocated for {', '.join(missing)}"
            )

        persons: list[Person] = []
        target_beds: list[Bed] = []
        source_beds: list[Bed] = []
        for person_id in request.person_ids:
            person = self._load_person(request, person_id)
            bed_id = request.allocated_beds[person_id]
            bed = self.repos.beds.find_by_id(bed_id)
            if bed is None or bed.status != BedStatus.RESERVED or bed.reserved_for != person_id:
                raise ValidationError(
                    ValidationReason.BED_NOT_RESERVED, f"Bed {bed_id} is no longer reserved for {person_id}"
                )
            persons.append(person)
            target_beds.append(bed)

            if person.bed_id and person.bed_id != bed_id:
                old_bed = self.repos.beds.find_by_id(person.bed_id)
                if old_bed is not None and old_bed.occupant_id == person_id:
                    source_beds.append(old_bed)

        # Last check before the write
        self.guard.check(request)

        with UnitOfWork(f"dispatch transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            for person in persons:
                uow.track(self.repos.persons, person)
                person.camp_id = request.target_camp_id
                person.bed_id = request.allocated_beds[person.id]
                person.status = PersonStatus.PENDING_ARRIVAL.value
            for bed in source_beds:
                uow.track(self.repos.beds, bed)
                bed.release()
            request.status = TransferStatus.TECHNICIANS_DISPATCHED
            request.dispatched_by = actor.id
            request.dispatch_date = self.today()

        logger.info(
            f"Transfer request {request.id} -> technicians_dispatched "
            f"({len(persons)} person(s), {len(source_beds)} source bed(s) released)"
        )
        return request

    def confirm_arrival(
        self,
        actor: Actor,
        request_id: str,
        person_id: str,
        arrival_date: date | None = None,
    ) -> TransferRequest:
        """Confirm one person reached the target camp.

        The allocated bed becomes occupied and a transfer log row is written.
        Arriving at the Exit Camp starts the person's exit formalities. The
        request completes once nobody is still pending arrival.
        """
        self.policy.require(actor, Permission.CONFIRM_ARRIVALS)
        request = self._load_request(request_id)
        validate_transition(request, TransferStatus.COMPLETED, "confirm arrival for")

        kind = request.kind_of(person_id)
        if kind is None:
            raise ValidationError(
                ValidationReason.PERSON_NOT_IN_REQUEST, f"{person_id} is not part of transfer {request.id}"
            )
        person = self._load_person(request, person_id)
        if not person.has_status(PersonStatus.PENDING_ARRIVAL):
            raise ValidationError(
                ValidationReason.PERSON_NOT_PENDING_ARRIVAL, f"{person_id} is '{person.status}', not pending arrival"
            )

        bed_id = request.allocated_beds.get(person_id)
        bed = self.repos.beds.find_by_id(bed_id) if bed_id else None
        if bed is None or bed.status != BedStatus.RESERVED or bed.reserved_for != person_id:
            raise ValidationError(
                ValidationReason.BED_NOT_RESERVED, f"Bed {bed_id} is not reserved for {person_id}"
            )

        still_pending = [
            pid
            for pid in request.person_ids
            if pid != person_id and self._load_person(request, pid).has_status(PersonStatus.PENDING_ARRIVAL)
        ]
        arrived_on = arrival_date or self.today()
        at_exit_camp = self.exit_camps.is_exit_camp(request.target_camp_id)

        log = TransferLog(
            id=None,
            person_id=person_id,
            person_kind=kind,
            transfer_request_id=request.id,
            from_camp_id=request.source_camp_id,
            to_camp_id=request.target_camp_id,
            to_bed_id=bed.id,
            transfer_date=arrived_on,
            reason=request.reason,
            transferred_by=actor.id,
            notes="Arrival confirmed" + (" - exit process started" if at_exit_camp else ""),
        )

        with UnitOfWork(f"confirm arrival of {person_id} for transfer {request.id}") as uow:
            uow.track(self.repos.transfers, request)
            uow.track(self.repos.beds, bed)
            uow.track(self.repos.persons, person)

            bed.occupy(person_id, kind)
            person.camp_id = request.target_camp_id
            person.bed_id = bed.id
            person.status = PersonStatus.ACTIVE.value
            person.actual_arrival_date = arrived_on
            person.last_transfer_date = arrived_on
            if at_exit_camp:
                person.exit = ExitFormalities(
                    exit_camp_id=request.target_camp_id,
                    start_date=arrived_on,
                    process_status=ExitProcessStatus.IN_PROCESS,
                )

            request.status = TransferStatus.PARTIALLY_ARRIVED if still_pending else TransferStatus.COMPLETED
            uow.add(self.repos.transfer_logs, log)

        logger.info(
            f"Arrival confirmed for {person_id} on transfer {request.id} -> {request.status.value}"
            + (" (exit process started)" if at_exit_camp else "")
        )
        return request

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_request(self, request_id: str) -> TransferRequest:
        return self._load_request(request_id)

    def list_requests(self, statuses: Iterable[TransferStatus] | None = None) -> list[TransferRequest]:
        if statuses is None:
            return self.repos.transfers.list_all()
        return self.repos.transfers.list_by_status(list(statuses))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_request(self, request_id: str) -> TransferRequest:
        request = self.repos.transfers.find_by_id(request_id)
        if request is None:
            raise NotFoundError("transfer request", request_id)
        return request

    def _load_person(self, request: TransferRequest, person_id: str) -> Person:
        kind = request.kind_of(person_id) or PersonKind.TECHNICIAN
        person = self.repos.persons.find(kind, person_id)
        if person is None:
            raise NotFoundError(kind.value, person_id)
        return person

    def _check_allocation_keys(self, request: TransferRequest, allocations: dict[str, str]) -> None:
        expected = set(request.person_ids)
        given = set(allocations)

        missing = sorted(expected - given)
        if missing:
            raise ValidationError(ValidationReason.INCOMPLETE_ALLOCATION, f"No bed assigned for {', '.join(missing)}")
        extra = sorted(given - expected)
        if extra:
            raise ValidationError(
                ValidationReason.UNEXPECTED_ALLOCATION, f"{', '.join(extra)} not part of transfer {request.id}"
            )

        bed_ids = list(allocations.values())
        if any(not bed_id for bed_id in bed_ids):
            raise ValidationError(ValidationReason.INCOMPLETE_ALLOCATION, "Every person needs a bed id")
        if len(set(bed_ids)) != len(bed_ids):
            raise ValidationError(ValidationReason.DUPLICATE_BED, "Each person must get a distinct bed")

    def _load_available_beds(self, request: TransferRequest, allocations: dict[str, str]) -> dict[str, Bed]:
        beds: dict[str, Bed] = {}
        for person_id in request.person_ids:
            bed_id = allocations[person_id]
            bed = self.repos.beds.find_by_id(bed_id)
            if bed is None:
                raise NotFoundError("bed", bed_id)
            if bed.camp_id != request.target_camp_id:
                raise ValidationError(
                    ValidationReason.BED_NOT_IN_TARGET_CAMP,
                    f"Bed {bed_id} is not in target camp {request.target_camp_id}",
                )
            if bed.status != BedStatus.AVAILABLE:
                raise ValidationError(
                    ValidationReason.BED_NOT_AVAILABLE, f"Bed {bed_id} is {bed.status.value}, not available"
                )
            beds[person_id] = bed
        return beds

    def _reserved_beds_of(self, request: TransferRequest) -> list[Bed]:
        """Allocated beds still reserved for this request's persons."""
        beds: list[Bed] = []
        for person_id, bed_id in request.allocated_beds.items():
            bed = self.repos.beds.find_by_id(bed_id)
            if bed is None:
                logger.warning(f"Allocated bed {bed_id} of transfer {request.id} no longer exists")
                continue
            if bed.status == BedStatus.RESERVED and bed.reserved_for == person_id:
                beds.append(bed)
            else:
                logger.warning(
                    f"Bed {bed_id} of transfer {request.id} is {bed.status.value} "
                    f"(reserved_for={bed.reserved_for}); leaving it untouched"
                )
        return beds
