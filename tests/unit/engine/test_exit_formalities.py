"""Tests for the exit formalities tracker."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from relocation.core.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    ValidationReason,
)
from relocation.core.models import (
    CHECKLIST_ITEMS,
    Bed,
    BedStatus,
    DropStatus,
    ExitFormalities,
    ExitProcessChoice,
    ExitProcessStatus,
    Person,
    PersonKind,
    PersonStatus,
)
from relocation.engine import derive_process_status


def seed_exiting(
    repos,
    today,
    person_id="tech-5",
    days_ago=3,
    checklist_done=False,
    deport=None,
    drop=DropStatus.NOT_SCHEDULED,
    bed_id="bed-x1",
):
    """Put a technician into exit formalities at camp-exit, occupying bed_id."""
    repos.persons.seed(
        Person(
            id=person_id,
            kind=PersonKind.TECHNICIAN,
            full_name=f"Person {person_id}",
            camp_id="camp-exit",
            bed_id=bed_id,
            exit=ExitFormalities(
                exit_camp_id="camp-exit",
                start_date=today - timedelta(days=days_ago),
                checklist=dict.fromkeys(CHECKLIST_ITEMS, checklist_done),
                deport_from_uae=deport,
                drop_status=drop,
                process_status=ExitProcessStatus.IN_PROCESS,
            ),
        )
    )
    if bed_id:
        repos.beds.seed(
            Bed(
                id=bed_id,
                camp_id="camp-exit",
                status=BedStatus.OCCUPIED,
                occupant_id=person_id,
                occupant_kind=PersonKind.TECHNICIAN,
            )
        )
    return person_id


class TestDeriveProcessStatus:
    """Tests for derive_process_status."""

    def make(self, start, done=False, status=ExitProcessStatus.IN_PROCESS):
        return ExitFormalities(
            start_date=start, checklist=dict.fromkeys(CHECKLIST_ITEMS, done), process_status=status
        )

    def test_within_sla(self):
        today = date(2026, 3, 10)
        assert derive_process_status(self.make(date(2026, 3, 3)), today, 7) == ExitProcessStatus.IN_PROCESS

    def test_past_sla_with_open_items(self):
        today = date(2026, 3, 10)
        assert derive_process_status(self.make(date(2026, 3, 2)), today, 7) == ExitProcessStatus.OVERDUE

    def test_past_sla_with_checklist_done(self):
        today = date(2026, 3, 10)
        info = self.make(date(2026, 2, 1), done=True)
        assert derive_process_status(info, today, 7) == ExitProcessStatus.IN_PROCESS

    def test_completed_stays_completed(self):
        today = date(2026, 3, 10)
        info = self.make(date(2026, 2, 1), status=ExitProcessStatus.FORMALITIES_COMPLETED)
        assert derive_process_status(info, today, 7) == ExitProcessStatus.FORMALITIES_COMPLETED

    def test_sla_is_configurable(self):
        today = date(2026, 3, 10)
        assert derive_process_status(self.make(date(2026, 3, 7)), today, 2) == ExitProcessStatus.OVERDUE


class TestListInProcess:
    def test_oldest_first_with_overdue_flag(self, engine, repos, today):
        seed_exiting(repos, today, person_id="tech-5", days_ago=2, bed_id="bed-x1")
        seed_exiting(repos, today, person_id="tech-6", days_ago=12, bed_id="bed-x2")

        rows = engine.exits.list_in_process()

        assert [row.person.id for row in rows] == ["tech-6", "tech-5"]
        assert rows[0].is_overdue is True
        assert rows[0].days_in_process == 12
        assert rows[1].is_overdue is False
        assert rows[1].total_count == len(CHECKLIST_ITEMS)

    def test_completed_cases_are_excluded(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=False)
        engine.exits.complete_formalities(admin, person_id)

        assert engine.exits.list_in_process() == []


class TestChecklist:
    """Tests for ExitFormalitiesService.set_checklist_item."""

    def test_sets_flag_in_any_order(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today)
        engine.exits.set_checklist_item(admin, person_id, "ticket_booked", True)
        engine.exits.set_checklist_item(admin, person_id, "toolbox_returned", True)

        stored = repos.persons.get(person_id)
        assert stored.exit.checklist["ticket_booked"] is True
        assert stored.exit.checklist["toolbox_returned"] is True
        assert stored.exit.completed_count == 2

    def test_update_rederives_overdue(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, days_ago=10)
        engine.exits.set_checklist_item(admin, person_id, "penalty_cleared", True)
        assert repos.persons.get(person_id).exit.process_status == ExitProcessStatus.OVERDUE

    def test_finishing_checklist_past_sla_clears_overdue(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, days_ago=9)
        first, *rest = CHECKLIST_ITEMS

        engine.exits.set_checklist_item(admin, person_id, first, True)
        assert repos.persons.get(person_id).exit.process_status == ExitProcessStatus.OVERDUE

        for item in rest:
            engine.exits.set_checklist_item(admin, person_id, item, True)

        stored = repos.persons.get(person_id)
        assert stored.exit.all_completed
        assert stored.exit.process_status == ExitProcessStatus.IN_PROCESS

    def test_unknown_item(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.set_checklist_item(admin, person_id, "visa_stamped", True)
        assert exc_info.value.reason == ValidationReason.UNKNOWN_CHECKLIST_ITEM

    def test_person_outside_exit_process(self, engine, admin):
        with pytest.raises(InvalidTransitionError) as exc_info:
            engine.exits.set_checklist_item(admin, "tech-1", "toolbox_returned", True)
        assert exc_info.value.current_state == "not_in_exit_process"

    def test_unknown_person(self, engine, admin):
        with pytest.raises(NotFoundError):
            engine.exits.set_checklist_item(admin, "nobody", "toolbox_returned", True)

    def test_requires_permission(self, engine, repos, coordinator, today):
        person_id = seed_exiting(repos, today)
        with pytest.raises(AuthorizationError):
            engine.exits.set_checklist_item(coordinator, person_id, "toolbox_returned", True)


class TestStayingBranch:
    """Completing formalities for a person who stays in the country."""

    def test_complete_formalities(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=False)
        engine.exits.complete_formalities(admin, person_id)

        person = repos.persons.get(person_id)
        assert person.status == PersonStatus.EXITED_COUNTRY.value
        assert person.camp_id is None
        assert person.bed_id is None
        assert person.exit.process_status == ExitProcessStatus.FORMALITIES_COMPLETED
        assert person.exit.completion_date == today
        assert person.exit.actual_exit_date == today
        assert repos.beds.get("bed-x1").status == BedStatus.AVAILABLE

    def test_checklist_must_be_complete(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, deport=False)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.complete_formalities(admin, person_id)
        assert exc_info.value.reason == ValidationReason.CHECKLIST_INCOMPLETE

    def test_decision_must_be_set(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.complete_formalities(admin, person_id)
        assert exc_info.value.reason == ValidationReason.DEPORT_DECISION_NOT_SET

    def test_deporting_person_needs_departure(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.complete_formalities(admin, person_id)
        assert exc_info.value.reason == ValidationReason.DEPORTING_REQUIRES_DEPARTURE

    def test_nothing_happens_after_completion(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=False)
        engine.exits.complete_formalities(admin, person_id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            engine.exits.set_checklist_item(admin, person_id, "toolbox_returned", False)
        assert exc_info.value.current_state == "formalities_completed"

    def test_bed_held_by_someone_else_is_left_alone(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=False)
        repos.beds.seed(
            Bed(
                id="bed-x1",
                camp_id="camp-exit",
                status=BedStatus.RESERVED,
                reserved_for="tech-9",
            )
        )
        engine.exits.complete_formalities(admin, person_id)

        assert repos.beds.get("bed-x1").reserved_for == "tech-9"
        assert repos.persons.get(person_id).bed_id is None

    def test_direct_deport_releases_previous_camp_bed(self, engine, repos, admin):
        engine.disciplinary.record_action(
            admin,
            "tech-2",
            action_type_id="type-term",
            termination_reason="Misconduct",
            exit_process_choice=ExitProcessChoice.DIRECT_DEPORT,
        )
        for item in CHECKLIST_ITEMS:
            engine.exits.set_checklist_item(admin, "tech-2", item, True)
        engine.exits.set_deport_decision(admin, "tech-2", False)

        engine.exits.complete_formalities(admin, "tech-2")

        assert repos.beds.get("bed-a2").status == BedStatus.AVAILABLE
        assert repos.persons.get("tech-2").status == PersonStatus.EXITED_COUNTRY.value


class TestDeportingBranch:
    """Vehicle assignment, driver dispatch and airport departure."""

    def test_full_departure(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True)

        engine.exits.assign_vehicle(
            admin, person_id, "DXB 4471", "Joseph", "06:30", flight_number="EK 502", expected_exit_date=today
        )
        scheduled = repos.persons.get(person_id)
        assert scheduled.exit.drop_status == DropStatus.SCHEDULED
        assert scheduled.exit.vehicle_number == "DXB 4471"
        assert scheduled.exit.flight_number == "EK 502"

        engine.exits.mark_driver_dispatched(admin, person_id)
        assert repos.persons.get(person_id).exit.drop_status == DropStatus.DRIVER_DISPATCHED

        engine.exits.confirm_departure(admin, person_id)
        person = repos.persons.get(person_id)
        assert person.exit.drop_status == DropStatus.DROPPED_AT_AIRPORT
        assert person.exit.process_status == ExitProcessStatus.FORMALITIES_COMPLETED
        assert person.status == PersonStatus.EXITED_COUNTRY.value
        assert person.camp_id is None
        assert repos.beds.get("bed-x1").status == BedStatus.AVAILABLE

    def test_vehicle_before_checklist_is_allowed(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, deport=True)
        engine.exits.assign_vehicle(admin, person_id, "DXB 4471", "Joseph")

        with pytest.raises(ValidationError) as exc_info:
            engine.exits.confirm_departure(admin, person_id)
        assert exc_info.value.reason == ValidationReason.CHECKLIST_INCOMPLETE

    def test_vehicle_needs_decision(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.assign_vehicle(admin, person_id, "DXB 4471", "Joseph")
        assert exc_info.value.reason == ValidationReason.DEPORT_DECISION_NOT_SET

    def test_vehicle_for_staying_person(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=False)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.assign_vehicle(admin, person_id, "DXB 4471", "Joseph")
        assert exc_info.value.reason == ValidationReason.NOT_DEPORTING

    def test_vehicle_needs_number_and_driver(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True)
        with pytest.raises(ValidationError) as exc_info:
            engine.exits.assign_vehicle(admin, person_id, "DXB 4471", " ")
        assert exc_info.value.reason == ValidationReason.MISSING_VEHICLE_INFO

    def test_reassigning_after_driver_left(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True, drop=DropStatus.DRIVER_DISPATCHED)
        with pytest.raises(InvalidTransitionError):
            engine.exits.assign_vehicle(admin, person_id, "DXB 9000", "Maria")

    def test_driver_dispatch_needs_schedule(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True)
        with pytest.raises(InvalidTransitionError) as exc_info:
            engine.exits.mark_driver_dispatched(admin, person_id)
        assert exc_info.value.current_state == "not_scheduled"

    def test_departure_needs_scheduled_drop(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True)
        with pytest.raises(InvalidTransitionError):
            engine.exits.confirm_departure(admin, person_id)

    def test_switching_to_staying_cancels_drop(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True, drop=DropStatus.SCHEDULED)

        engine.exits.set_deport_decision(admin, person_id, False)

        person = repos.persons.get(person_id)
        assert person.exit.deport_from_uae is False
        assert person.exit.drop_status == DropStatus.CANCELLED

        engine.exits.complete_formalities(admin, person_id)
        assert repos.persons.get(person_id).exit.process_status == ExitProcessStatus.FORMALITIES_COMPLETED

    def test_cancelled_drop_can_be_rescheduled(self, engine, repos, admin, today):
        person_id = seed_exiting(repos, today, checklist_done=True, deport=True, drop=DropStatus.CANCELLED)
        engine.exits.assign_vehicle(admin, person_id, "DXB 4471", "Joseph")
        assert repos.persons.get(person_id).exit.drop_status == DropStatus.SCHEDULED
