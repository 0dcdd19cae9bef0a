"""
Pydantic schemas for exit formalities endpoints.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from relocation.core.models import Person
from relocation.engine.exit_formalities import ExitCaseView


class ChecklistUpdate(BaseModel):
    item: str
    completed: bool


class DeportDecisionUpdate(BaseModel):
    deport_from_uae: bool


class VehicleAssignment(BaseModel):
    """Airport drop details for a deporting person."""

    vehicle_number: str
    driver_name: str
    scheduled_pickup_time: str = ""
    flight_number: str | None = None
    flight_time: str | None = None
    expected_exit_date: date | None = None


class PersonExitResponse(BaseModel):
    """A person's residency and exit formalities state."""

    person_id: str
    person_kind: str
    full_name: str
    camp_id: str | None = None
    bed_id: str | None = None
    status: str
    exit_start_date: date | None = None
    checklist: dict[str, bool]
    deport_from_uae: bool | None = None
    flight_number: str = ""
    flight_time: str = ""
    expected_exit_date: date | None = None
    vehicle_number: str = ""
    driver_name: str = ""
    scheduled_pickup_time: str = ""
    drop_status: str
    exit_process_status: str | None = None
    actual_exit_date: date | None = None
    completion_date: date | None = None

    @classmethod
    def from_model(cls, person: Person) -> PersonExitResponse:
        exit_info = person.exit
        return cls(
            person_id=person.id,
            person_kind=person.kind.value,
            full_name=person.full_name,
            camp_id=person.camp_id,
            bed_id=person.bed_id,
            status=person.status,
            exit_start_date=exit_info.start_date,
            checklist=dict(exit_info.checklist),
            deport_from_uae=exit_info.deport_from_uae,
            flight_number=exit_info.flight_number,
            flight_time=exit_info.flight_time,
            expected_exit_date=exit_info.expected_exit_date,
            vehicle_number=exit_info.vehicle_number,
            driver_name=exit_info.driver_name,
            scheduled_pickup_time=exit_info.scheduled_pickup_time,
            drop_status=exit_info.drop_status.value,
            exit_process_status=exit_info.process_status.value if exit_info.process_status else None,
            actual_exit_date=exit_info.actual_exit_date,
            completion_date=exit_info.completion_date,
        )


class ExitCaseResponse(PersonExitResponse):
    """A row of the exit formalities tracker."""

    days_in_process: int
    is_overdue: bool
    completed_count: int
    total_count: int
    all_completed: bool

    @classmethod
    def from_view(cls, view: ExitCaseView) -> ExitCaseResponse:
        base = PersonExitResponse.from_model(view.person).model_dump()
        base["exit_process_status"] = view.process_status.value
        return cls(
            **base,
            days_in_process=view.days_in_process,
            is_overdue=view.is_overdue,
            completed_count=view.completed_count,
            total_count=view.total_count,
            all_completed=view.all_completed,
        )
