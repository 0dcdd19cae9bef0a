"""
Disciplinary exit trigger.

Recording a resignation or termination starts the person's exit process:
either a transfer request to the Exit Camp (camp transfer) or an immediate
move onto the Exit Camp's books (direct deport). Terminations cannot be saved
without choosing one. Resignations are saved first and flagged for follow-up
until the exit rule has run; without a choice they are picked up later
through initiate_exit_process.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..core.constants import EXIT_CASE_NOTE
from ..core.errors import NotFoundError, TransferEngineError, ValidationError, ValidationReason
from ..core.interfaces import Repositories
from ..core.models import (
    Camp,
    DisciplinaryAction,
    ExitActionKind,
    ExitFormalities,
    ExitProcessChoice,
    ExitProcessStatus,
    MovementReason,
    Person,
    PersonKind,
    PersonStatus,
    TransferRequest,
    TransferStatus,
    resolve_exit_kind,
)
from ..core.policy import Actor, Permission, TransitionPolicy
from ..data.unit_of_work import UnitOfWork
from .exit_camp import ExitCampResolver
from .transfer_machine import is_terminal

logger = logging.getLogger(__name__)

EXIT_KINDS = frozenset({ExitActionKind.TERMINATION, ExitActionKind.RESIGNATION})


class TriggerOutcome(Enum):
    """What evaluating the trigger did"""

    TRANSFER_CREATED = "transfer_created"
    DIRECTLY_DEPORTED = "directly_deported"
    EXISTING_TRANSFER = "existing_transfer"
    ALREADY_AT_EXIT_CAMP = "already_at_exit_camp"
    NOT_EXIT_CASE = "not_exit_case"
    FOLLOW_UP_PENDING = "follow_up_pending"


@dataclass
class TriggerResult:
    outcome: TriggerOutcome
    transfer_request: TransferRequest | None = None
    exit_camp_id: str | None = None


class DisciplinaryExitTrigger:
    """Records disciplinary actions and runs the exit rule for them."""

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
        self.today = today

    def record_action(
        self,
        actor: Actor,
        person_id: str,
        action_type_id: str | None = None,
        legacy_action_type: str = "",
        action_date: date | None = None,
        violation: str = "",
        termination_reason: str | None = None,
        exit_process_choice: ExitProcessChoice | None = None,
        notes: str = "",
    ) -> tuple[DisciplinaryAction, TriggerResult]:
        """Store a disciplinary action together with its exit process effects.

        Raises:
            ValidationError: termination without a reason, or without an exit
                choice when an exit process is still needed
            ConfigurationError: the exit process is needed and no Exit Camp exists;
                a resignation is already stored (flagged) when this is raised
        """
        self.policy.require(actor, Permission.RECORD_DISCIPLINARY)

        person = self.repos.persons.find(PersonKind.TECHNICIAN, person_id)
        if person is None:
            raise NotFoundError(PersonKind.TECHNICIAN.value, person_id)

        kind = resolve_exit_kind(legacy_action_type)
        if action_type_id:
            action_type = self.repos.action_types.find_by_id(action_type_id)
            if action_type is None:
                raise NotFoundError("disciplinary action type", action_type_id)
            if action_type.kind != ExitActionKind.OTHER:
                kind = action_type.kind

        action = DisciplinaryAction(
            id=None,
            person_id=person_id,
            action_type_id=action_type_id,
            legacy_action_type=legacy_action_type,
            kind=kind,
            action_date=action_date or self.today(),
            violation=violation,
            termination_reason=(termination_reason or "").strip() or None,
            exit_process_choice=exit_process_choice if kind in EXIT_KINDS else None,
            notes=notes,
        )

        if kind == ExitActionKind.TERMINATION and not action.termination_reason:
            raise ValidationError(ValidationReason.MISSING_TERMINATION_REASON, "Termination reason is required")

        if kind == ExitActionKind.RESIGNATION:
            result = self._record_resignation(actor, person, action)
        else:
            with UnitOfWork(f"record disciplinary action for {person_id}") as uow:
                if kind == ExitActionKind.TERMINATION:
                    result = self._evaluate(actor, person, action.exit_process_choice, uow)
                    if result.outcome == TriggerOutcome.FOLLOW_UP_PENDING:
                        raise ValidationError(
                            ValidationReason.EXIT_CHOICE_REQUIRED,
                            "Choose camp transfer or direct deport before saving a termination",
                        )
                else:
                    result = TriggerResult(TriggerOutcome.NOT_EXIT_CASE)
                uow.add(self.repos.disciplinary, action)

        logger.info(f"Disciplinary action {action.id} ({kind.value}) recorded for {person_id}: {result.outcome.value}")
        return action, result

    def _record_resignation(self, actor: Actor, person: Person, action: DisciplinaryAction) -> TriggerResult:
        """Save the resignation flagged for follow-up, then run the exit rule.

        A failing exit rule leaves the stored action flagged and re-raises.
        """
        with UnitOfWork(f"record resignation for {person.id}") as uow:
            action.follow_up_required = True
            uow.add(self.repos.disciplinary, action)

        try:
            with UnitOfWork(f"exit trigger for resignation {action.id}") as uow:
                result = self._evaluate(actor, person, action.exit_process_choice, uow)
                if result.outcome != TriggerOutcome.FOLLOW_UP_PENDING:
                    uow.track(self.repos.disciplinary, action)
                    action.follow_up_required = False
        except TransferEngineError as e:
            action.follow_up_required = True
            logger.warning(f"Resignation {action.id} saved; exit process still pending for {person.id}: {e}")
            raise
        return result

    def initiate_exit_process(self, actor: Actor, action_id: str, choice: ExitProcessChoice) -> TriggerResult:
        """Follow-up path for a stored resignation or termination."""
        self.policy.require(actor, Permission.RECORD_DISCIPLINARY)

        action = self.repos.disciplinary.find_by_id(action_id)
        if action is None:
            raise NotFoundError("disciplinary action", action_id)
        if action.kind not in EXIT_KINDS:
            raise ValidationError(
                ValidationReason.NOT_AN_EXIT_CASE, f"Disciplinary action {action_id} is not a resignation or termination"
            )

        person = self.repos.persons.find(PersonKind.TECHNICIAN, action.person_id)
        if person is None:
            raise NotFoundError(PersonKind.TECHNICIAN.value, action.person_id)

        with UnitOfWork(f"initiate exit process for action {action_id}") as uow:
            result = self._evaluate(actor, person, choice, uow)
            uow.track(self.repos.disciplinary, action)
            action.follow_up_required = False
            action.exit_process_choice = choice

        logger.info(f"Exit process for action {action_id} ({person.id}): {result.outcome.value}")
        return result

    def evaluate(self, actor: Actor, person: Person, choice: ExitProcessChoice | None) -> TriggerResult:
        """Run the exit rule for a person and commit its effects on its own."""
        self.policy.require(actor, Permission.RECORD_DISCIPLINARY)
        with UnitOfWork(f"exit trigger for {person.id}") as uow:
            result = self._evaluate(actor, person, choice, uow)
        return result

    def find_open_exit_transfer(self, person_id: str, exit_camp_id: str) -> TransferRequest | None:
        """A non-terminal request moving this person to the Exit Camp, if any."""
        for request in self.repos.transfers.list_all():
            if is_terminal(request.status):
                continue
            if request.target_camp_id == exit_camp_id and request.includes(person_id):
                return request
        return None

    def _evaluate(
        self,
        actor: Actor,
        person: Person,
        choice: ExitProcessChoice | None,
        uow: UnitOfWork,
    ) -> TriggerResult:
        exit_camp = self.exit_camps.resolve()

        if person.camp_id == exit_camp.id:
            return TriggerResult(TriggerOutcome.ALREADY_AT_EXIT_CAMP, exit_camp_id=exit_camp.id)

        existing = self.find_open_exit_transfer(person.id, exit_camp.id)
        if existing is not None:
            logger.info(f"{person.id} already has exit transfer {existing.id} ({existing.status.value})")
            return TriggerResult(TriggerOutcome.EXISTING_TRANSFER, existing, exit_camp.id)

        if choice is None:
            return TriggerResult(TriggerOutcome.FOLLOW_UP_PENDING, exit_camp_id=exit_camp.id)

        if choice == ExitProcessChoice.CAMP_TRANSFER:
            request = self._stage_exit_transfer(actor, person, exit_camp, uow)
            return TriggerResult(TriggerOutcome.TRANSFER_CREATED, request, exit_camp.id)

        self._stage_direct_deport(person, exit_camp, uow)
        return TriggerResult(TriggerOutcome.DIRECTLY_DEPORTED, exit_camp_id=exit_camp.id)

    def _stage_exit_transfer(self, actor: Actor, person: Person, exit_camp: Camp, uow: UnitOfWork) -> TransferRequest:
        if not person.camp_id:
            raise ValidationError(
                ValidationReason.NO_CURRENT_CAMP, f"{person.id} has no current camp to transfer out of"
            )

        request = TransferRequest(
            id=None,
            source_camp_id=person.camp_id,
            target_camp_id=exit_camp.id,
            request_date=self.today(),
            reason=MovementReason.EXIT_CASE,
            technician_ids=[person.id] if person.kind == PersonKind.TECHNICIAN else [],
            external_personnel_ids=[person.id] if person.kind == PersonKind.EXTERNAL else [],
            status=TransferStatus.PENDING_ALLOCATION,
            notes=EXIT_CASE_NOTE,
            requested_by=actor.id,
        )
        uow.add(self.repos.transfers, request)
        logger.info(f"Staged exit transfer for {person.id}: {person.camp_id} -> {exit_camp.id}")
        return request

    def _stage_direct_deport(self, person: Person, exit_camp: Camp, uow: UnitOfWork) -> None:
        # The current bed stays assigned; it is released when formalities complete
        uow.track(self.repos.persons, person)
        person.camp_id = exit_camp.id
        person.status = PersonStatus.PENDING_EXIT.value
        person.exit = ExitFormalities(
            exit_camp_id=exit_camp.id,
            start_date=self.today(),
            process_status=ExitProcessStatus.IN_PROCESS,
        )
        logger.info(f"Staged direct deport of {person.id} to {exit_camp.id}")
