"""
Exit formalities tracker.

Applies to persons at the Exit Camp with an exit start date whose
formalities are not yet completed. The nine checklist flags can be set in
any order; overdue status is re-derived on every flag update and on read.
Once the checklist is complete the deport decision gates the two endings:

    deporting: assign vehicle -> (driver dispatched) -> confirm departure
    staying:   complete formalities

Both endings mark the person exited_country, clear camp and bed, and release
the bed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from ..core.errors import InvalidTransitionError, NotFoundError, ValidationError, ValidationReason
from ..core.interfaces import Repositories
from ..core.models import (
    CHECKLIST_ITEMS,
    BedStatus,
    DropStatus,
    ExitFormalities,
    ExitProcessStatus,
    Person,
    PersonStatus,
)
from ..core.policy import Actor, Permission, TransitionPolicy
from ..data.unit_of_work import UnitOfWork
from .exit_camp import EngineConfig, ExitCampResolver

logger = logging.getLogger(__name__)

VEHICLE_ASSIGNABLE = frozenset({DropStatus.NOT_SCHEDULED, DropStatus.SCHEDULED, DropStatus.CANCELLED})
DEPARTURE_READY = frozenset({DropStatus.SCHEDULED, DropStatus.DRIVER_DISPATCHED})


def derive_process_status(exit_info: ExitFormalities, today: date, sla_days: int) -> ExitProcessStatus:
    """overdue once more than sla_days have passed with the checklist incomplete"""
    if exit_info.process_status == ExitProcessStatus.FORMALITIES_COMPLETED:
        return ExitProcessStatus.FORMALITIES_COMPLETED
    if exit_info.days_in_process(today) > sla_days and not exit_info.all_completed:
        return ExitProcessStatus.OVERDUE
    return ExitProcessStatus.IN_PROCESS


@dataclass
class ExitCaseView:
    """Read model row for a person in exit formalities"""

    person: Person
    days_in_process: int
    is_overdue: bool
    completed_count: int
    total_count: int
    all_completed: bool
    process_status: ExitProcessStatus


class ExitFormalitiesService:
    """Checklist, deport decision and airport drop for persons at the Exit Camp."""

    def __init__(
        self,
        repos: Repositories,
        exit_camps: ExitCampResolver,
        config: EngineConfig,
        policy: TransitionPolicy | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.repos = repos
        self.exit_camps = exit_camps
        self.config = config
        self.policy = policy or TransitionPolicy()
        self.today = today

    @property
    def sla_days(self) -> int:
        return self.config.get_int("exit.sla_days")

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def list_in_process(self) -> list[ExitCaseView]:
        """Every person currently going through exit formalities, oldest first."""
        exit_camp = self.exit_camps.resolve()
        today = self.today()
        sla_days = self.sla_days

        rows = []
        for person in self.repos.persons.list_in_exit_process(exit_camp.id):
            if person.exit.start_date is None:
                continue
            status = derive_process_status(person.exit, today, sla_days)
            rows.append(
                ExitCaseView(
                    person=person,
                    days_in_process=person.exit.days_in_process(today),
                    is_overdue=status == ExitProcessStatus.OVERDUE,
                    completed_count=person.exit.completed_count,
                    total_count=len(CHECKLIST_ITEMS),
                    all_completed=person.exit.all_completed,
                    process_status=status,
                )
            )
        rows.sort(key=lambda row: row.days_in_process, reverse=True)
        return rows

    # ------------------------------------------------------------------
    # Checklist phase
    # ------------------------------------------------------------------

    def set_checklist_item(self, actor: Actor, person_id: str, item: str, completed: bool) -> Person:
        """Set one checklist flag and re-derive in_process/overdue."""
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        if item not in CHECKLIST_ITEMS:
            raise ValidationError(ValidationReason.UNKNOWN_CHECKLIST_ITEM, f"Unknown checklist item '{item}'")
        person = self._load_tracked(person_id, f"update {item} for")

        with UnitOfWork(f"checklist {item} for {person_id}") as uow:
            uow.track(self.repos.persons, person)
            person.exit.checklist[item] = bool(completed)
            person.exit.process_status = derive_process_status(person.exit, self.today(), self.sla_days)

        logger.info(
            f"Exit checklist {item}={bool(completed)} for {person_id} "
            f"({person.exit.completed_count}/{len(CHECKLIST_ITEMS)}, {person.exit.process_status.value})"
        )
        return person

    def set_deport_decision(self, actor: Actor, person_id: str, deport: bool) -> Person:
        """Record whether the person leaves the country.

        The decision can change until formalities complete. Switching to
        staying while an airport drop is scheduled cancels the drop.
        """
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        person = self._load_tracked(person_id, "set deport decision for")

        with UnitOfWork(f"deport decision for {person_id}") as uow:
            uow.track(self.repos.persons, person)
            previous = person.exit.deport_from_uae
            person.exit.deport_from_uae = bool(deport)
            if not deport and person.exit.drop_status in DEPARTURE_READY:
                logger.warning(
                    f"{person_id} switched to staying with airport drop {person.exit.drop_status.value}; "
                    f"cancelling the drop"
                )
                person.exit.drop_status = DropStatus.CANCELLED

        logger.info(f"Deport decision for {person_id}: {previous} -> {bool(deport)}")
        return person

    # ------------------------------------------------------------------
    # Deporting branch
    # ------------------------------------------------------------------

    def assign_vehicle(
        self,
        actor: Actor,
        person_id: str,
        vehicle_number: str,
        driver_name: str,
        scheduled_pickup_time: str = "",
        flight_number: str | None = None,
        flight_time: str | None = None,
        expected_exit_date: date | None = None,
    ) -> Person:
        """Schedule the airport drop: not_scheduled/cancelled -> scheduled."""
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        person = self._load_tracked(person_id, "assign vehicle for")
        self._require_deporting(person)

        vehicle_number = (vehicle_number or "").strip()
        driver_name = (driver_name or "").strip()
        if not vehicle_number or not driver_name:
            raise ValidationError(
                ValidationReason.MISSING_VEHICLE_INFO, "Vehicle number and driver name are both required"
            )
        if person.exit.drop_status not in VEHICLE_ASSIGNABLE:
            raise InvalidTransitionError("airport drop", person_id, person.exit.drop_status.value, "assign vehicle for")

        with UnitOfWork(f"assign vehicle for {person_id}") as uow:
            uow.track(self.repos.persons, person)
            person.exit.vehicle_number = vehicle_number
            person.exit.driver_name = driver_name
            person.exit.scheduled_pickup_time = scheduled_pickup_time or ""
            if flight_number is not None:
                person.exit.flight_number = flight_number
            if flight_time is not None:
                person.exit.flight_time = flight_time
            if expected_exit_date is not None:
                person.exit.expected_exit_date = expected_exit_date
            person.exit.drop_status = DropStatus.SCHEDULED

        logger.info(f"Airport drop scheduled for {person_id}: vehicle {vehicle_number}, driver {driver_name}")
        return person

    def mark_driver_dispatched(self, actor: Actor, person_id: str) -> Person:
        """scheduled -> driver_dispatched"""
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        person = self._load_tracked(person_id, "dispatch driver for")
        self._require_deporting(person)
        if person.exit.drop_status != DropStatus.SCHEDULED:
            raise InvalidTransitionError("airport drop", person_id, person.exit.drop_status.value, "dispatch driver for")

        with UnitOfWork(f"driver dispatched for {person_id}") as uow:
            uow.track(self.repos.persons, person)
            person.exit.drop_status = DropStatus.DRIVER_DISPATCHED

        logger.info(f"Driver dispatched for {person_id}")
        return person

    def confirm_departure(self, actor: Actor, person_id: str) -> Person:
        """The person was dropped at the airport and left the country."""
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        person = self._load_tracked(person_id, "confirm departure for")
        self._require_checklist(person)
        self._require_deporting(person)
        if person.exit.drop_status not in DEPARTURE_READY:
            raise InvalidTransitionError(
                "airport drop", person_id, person.exit.drop_status.value, "confirm departure for"
            )

        self._finish(person, f"confirm departure for {person_id}", drop_status=DropStatus.DROPPED_AT_AIRPORT)
        logger.info(f"Departure confirmed for {person_id}; formalities completed")
        return person

    # ------------------------------------------------------------------
    # Staying branch
    # ------------------------------------------------------------------

    def complete_formalities(self, actor: Actor, person_id: str) -> Person:
        """Complete formalities for a person who is not being deported."""
        self.policy.require(actor, Permission.MANAGE_EXIT_FORMALITIES)
        person = self._load_tracked(person_id, "complete formalities for")
        self._require_checklist(person)
        if person.exit.deport_from_uae is None:
            raise ValidationError(
                ValidationReason.DEPORT_DECISION_NOT_SET, "Set the deport decision before completing formalities"
            )
        if person.exit.deport_from_uae:
            raise ValidationError(
                ValidationReason.DEPORTING_REQUIRES_DEPARTURE,
                "Person is being deported; confirm the airport departure instead",
            )

        self._finish(person, f"complete formalities for {person_id}")
        logger.info(f"Exit formalities completed for {person_id}")
        return person

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_tracked(self, person_id: str, action: str) -> Person:
        person = self.repos.persons.find_by_id(person_id)
        if person is None:
            raise NotFoundError("person", person_id)

        exit_camp = self.exit_camps.resolve()
        if person.exit.process_status == ExitProcessStatus.FORMALITIES_COMPLETED:
            raise InvalidTransitionError(
                "exit formalities", person_id, ExitProcessStatus.FORMALITIES_COMPLETED.value, action
            )
        if person.camp_id != exit_camp.id or person.exit.start_date is None:
            raise InvalidTransitionError("exit formalities", person_id, "not_in_exit_process", action)
        return person

    def _require_checklist(self, person: Person) -> None:
        if not person.exit.all_completed:
            missing = [item for item in CHECKLIST_ITEMS if not person.exit.checklist.get(item)]
            raise ValidationError(
                ValidationReason.CHECKLIST_INCOMPLETE, f"Checklist incomplete: {', '.join(missing)}"
            )

    def _require_deporting(self, person: Person) -> None:
        if person.exit.deport_from_uae is None:
            raise ValidationError(ValidationReason.DEPORT_DECISION_NOT_SET, "Set the deport decision first")
        if not person.exit.deport_from_uae:
            raise ValidationError(ValidationReason.NOT_DEPORTING, "Person is not being deported")

    def _finish(self, person: Person, label: str, drop_status: DropStatus | None = None) -> None:
        today = self.today()
        bed = self.repos.beds.find_by_id(person.bed_id) if person.bed_id else None
        if bed is not None and person.id not in (bed.occupant_id, bed.reserved_for):
            logger.warning(f"Bed {bed.id} of {person.id} is held by someone else; leaving it untouched")
            bed = None

        with UnitOfWork(label) as uow:
            uow.track(self.repos.persons, person)
            if bed is not None and bed.status != BedStatus.AVAILABLE:
                uow.track(self.repos.beds, bed)
                bed.release()
            if drop_status is not None:
                person.exit.drop_status = drop_status
            person.exit.actual_exit_date = today
            person.exit.completion_date = today
            person.exit.process_status = ExitProcessStatus.FORMALITIES_COMPLETED
            person.status = PersonStatus.EXITED_COUNTRY.value
            person.camp_id = None
            person.bed_id = None
