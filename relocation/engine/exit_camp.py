"""Exit Camp resolution.

The Exit Camp is an explicit configuration reference (exit.camp_id). Older
deployments never set it, so when it is absent the resolver falls back to the
camp tagged exit_camp and then, if allowed, to the legacy name/code match.
"""

from __future__ import annotations

import logging
from typing import Protocol

from ..core.constants import LEGACY_EXIT_CAMP_TOKENS
from ..core.errors import ConfigurationError, ExitCampNotFoundError
from ..core.interfaces import CampStore
from ..core.models import Camp, CampType

logger = logging.getLogger(__name__)


class EngineConfig(Protocol):
    """The subset of ConfigLoader the engine reads"""

    def get_str(self, key: str) -> str: ...

    def get_bool(self, key: str) -> bool: ...

    def get_int(self, key: str) -> int: ...


def _matches_legacy_tokens(camp: Camp) -> bool:
    for text in (camp.name, camp.code):
        lowered = (text or "").lower()
        if all(token in lowered for token in LEGACY_EXIT_CAMP_TOKENS):
            return True
    return False


class ExitCampResolver:
    """Finds the designated Exit Camp."""

    def __init__(self, camps: CampStore, config: EngineConfig):
        self.camps = camps
        self.config = config

    def resolve(self) -> Camp:
        """Return the Exit Camp.

        Raises:
            ConfigurationError: exit.camp_id names a camp that does not exist
            ExitCampNotFoundError: No camp qualifies as the Exit Camp
        """
        configured_id = (self.config.get_str("exit.camp_id") or "").strip()
        if configured_id:
            camp = self.camps.find_by_id(configured_id)
            if camp is None:
                raise ConfigurationError(f"exit.camp_id references unknown camp '{configured_id}'")
            return camp

        camps = self.camps.list_all()
        tagged = [c for c in camps if c.camp_type == CampType.EXIT_CAMP]
        if tagged:
            if len(tagged) > 1:
                logger.warning(f"{len(tagged)} camps are tagged exit_camp; using {tagged[0].id}. Set exit.camp_id.")
            return tagged[0]

        if self.config.get_bool("exit.legacy_name_match"):
            legacy = [c for c in camps if _matches_legacy_tokens(c)]
            if legacy:
                logger.warning(
                    f"Exit Camp resolved by legacy name match to {legacy[0].id} ({legacy[0].name}). "
                    f"Set exit.camp_id to make this explicit."
                )
                return legacy[0]

        raise ExitCampNotFoundError("No Exit Camp found. Tag a camp as exit_camp or set exit.camp_id.")

    def is_exit_camp(self, camp_id: str | None) -> bool:
        """True when camp_id is the Exit Camp. False when there is no Exit Camp at all."""
        if not camp_id:
            return False
        try:
            return self.resolve().id == camp_id
        except ExitCampNotFoundError:
            logger.debug("No Exit Camp configured")
            return False
