"""
UnitOfWork - one transition, one commit.

A transition tracks every entity it will touch before mutating it, then
commits the changed fields record by record. PocketBase has no
cross-collection transaction, so a failed write is compensated by reverting
the writes already applied, newest first.

Usage:
    with UnitOfWork("dispatch transfer abc") as uow:
        request = uow.track(repos.transfers, request)
        person = uow.track(repos.persons, person)
        person.status = "pending_arrival"
        request.status = TransferStatus.TECHNICIANS_DISPATCHED
    # committed here; PartialTransitionError if a write failed
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeVar

from ..core.errors import PartialTransitionError
from ..core.interfaces import Repository

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Operation:
    kind: str  # "update" or "create"
    repo: Repository
    entity: Any
    snapshot: dict[str, Any] | None = None


class UnitOfWork:
    """Stages entity changes and commits them as one unit."""

    def __init__(self, label: str):
        self.label = label
        self._operations: list[_Operation] = []
        self._tracked_ids: set[int] = set()
        self._committed = False

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.commit()

    def track(self, repo: Repository, entity: T) -> T:
        """Snapshot an entity before it is mutated. Tracking twice is a no-op."""
        if id(entity) in self._tracked_ids:
            return entity
        self._tracked_ids.add(id(entity))
        snapshot = copy.deepcopy(repo.to_record(entity))
        self._operations.append(_Operation("update", repo, entity, snapshot))
        return entity

    def add(self, repo: Repository, entity: T) -> T:
        """Stage a new entity for creation."""
        self._operations.append(_Operation("create", repo, entity))
        return entity

    def commit(self) -> None:
        """Apply every staged change, compensating on the first failure.

        Raises:
            PartialTransitionError: If any write failed. rolled_back tells
                whether the compensation restored every applied write.
        """
        if self._committed:
            return

        applied: list[tuple[_Operation, dict[str, Any] | None]] = []
        try:
            for op in self._operations:
                if op.kind == "update":
                    diff = self._diff(op)
                    if not diff:
                        continue
                    logger.debug(f"[{self.label}] update {op.repo.record_key(op.entity)}: {sorted(diff)}")
                    op.repo.update_fields(op.entity, diff)
                    assert op.snapshot is not None
                    applied.append((op, {key: op.snapshot.get(key) for key in diff}))
                else:
                    op.repo.create(op.entity)
                    logger.debug(f"[{self.label}] created {op.repo.record_key(op.entity)}")
                    applied.append((op, None))
        except Exception as e:
            logger.error(f"[{self.label}] write failed after {len(applied)} applied change(s): {e}")
            unreverted = self._compensate(applied)
            raise PartialTransitionError(self.label, rolled_back=not unreverted, unreverted=unreverted, cause=e) from e

        self._committed = True

    def _diff(self, op: _Operation) -> dict[str, Any]:
        assert op.snapshot is not None
        current = op.repo.to_record(op.entity)
        return {key: value for key, value in current.items() if op.snapshot.get(key) != value}

    def _compensate(self, applied: list[tuple[_Operation, dict[str, Any] | None]]) -> list[str]:
        """Revert applied writes newest first; return the records that could not be reverted."""
        unreverted: list[str] = []
        for op, previous in reversed(applied):
            key = op.repo.record_key(op.entity)
            try:
                if previous is None:
                    op.repo.delete(op.entity)
                else:
                    op.repo.update_fields(op.entity, previous)
                logger.info(f"[{self.label}] reverted {key}")
            except Exception as e:
                logger.error(f"[{self.label}] could not revert {key}: {e}")
                unreverted.append(key)
        return unreverted
