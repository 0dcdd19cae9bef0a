"""Camp repository for data access."""

from __future__ import annotations

import logging
from typing import Any

from ...core.interfaces import CampStore
from ...core.models import Camp, CampType
from .base import PocketBaseRepository

logger = logging.getLogger(__name__)


class CampRepository(PocketBaseRepository, CampStore):
    """Repository for Camp data access"""

    collection = "camps"

    def list_all(self) -> list[Camp]:
        return [self._map_from_db(record) for record in self._get_full_list(self.collection)]

    def to_record(self, entity: Camp) -> dict[str, Any]:
        return {
            "name": entity.name,
            "code": entity.code,
            "camp_type": entity.camp_type.value,
        }

    def _map_from_db(self, record: Any) -> Camp:
        raw_type = getattr(record, "camp_type", None) or CampType.REGULAR_CAMP.value
        try:
            camp_type = CampType(raw_type)
        except ValueError:
            logger.debug(f"Camp {record.id} has unrecognized camp_type '{raw_type}', treating as regular")
            camp_type = CampType.REGULAR_CAMP

        return Camp(
            id=record.id,
            name=getattr(record, "name", "") or "",
            code=getattr(record, "code", "") or "",
            camp_type=camp_type,
        )
