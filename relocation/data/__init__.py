"""PocketBase storage layer and the unit of work used by engine transitions."""

from __future__ import annotations

from .repository_factory import RepositoryFactory
from .unit_of_work import UnitOfWork

__all__ = ["RepositoryFactory", "UnitOfWork"]
