"""Shared PocketBase plumbing for the engine's repositories."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from ...core.errors import StoreError
from ...core.interfaces import Repository

logger = logging.getLogger(__name__)


def escape_filter_value(value: str) -> str:
    """Escape a value for use inside a double-quoted PocketBase filter string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def relation(record: Any, field: str) -> str | None:
    """Read a single relation field; PocketBase stores an unset relation as ""."""
    value = getattr(record, field, None)
    return value or None


def relation_list(record: Any, field: str) -> list[str]:
    value = getattr(record, field, None)
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v]


class PocketBaseRepository(Repository):
    """Base class for repositories over one PocketBase collection.

    Reads return None for a missing record. Every other failure, read or
    write, is raised as StoreError so nothing is silently lost.
    """

    collection: str = ""

    def __init__(self, pb_client: PocketBase) -> None:
        """Initialize repository with PocketBase client.

        Args:
            pb_client: PocketBase client instance
        """
        self.pb = pb_client

    @abstractmethod
    def _map_from_db(self, record: Any) -> Any:
        """Map a PocketBase record to its domain model"""
        pass

    def _collection_for(self, entity: Any) -> str:
        return self.collection

    def find_by_id(self, id: str) -> Any | None:
        record = self._get_one(self.collection, id)
        if record is None:
            return None
        return self._map_from_db(record)

    def record_key(self, entity: Any) -> str:
        return f"{self._collection_for(entity)}/{entity.id}"

    def update_fields(self, entity: Any, fields: dict[str, Any]) -> None:
        collection = self._collection_for(entity)
        try:
            self.pb.collection(collection).update(entity.id, fields)
        except Exception as e:
            raise StoreError(f"Error updating {collection}/{entity.id}: {e}") from e

    def create(self, entity: Any) -> str:
        collection = self._collection_for(entity)
        data = self.to_record(entity)
        try:
            record = self.pb.collection(collection).create(data)
        except Exception as e:
            raise StoreError(f"Error creating {collection} record: {e}") from e
        entity.id = record.id
        return str(record.id)

    def delete(self, entity: Any) -> None:
        collection = self._collection_for(entity)
        try:
            self.pb.collection(collection).delete(entity.id)
        except Exception as e:
            raise StoreError(f"Error deleting {collection}/{entity.id}: {e}") from e

    def _get_one(self, collection: str, id: str) -> Any | None:
        if not id:
            return None
        try:
            return self.pb.collection(collection).get_one(id)
        except ClientResponseError as e:
            if getattr(e, "status", None) == 404:
                return None
            raise StoreError(f"Error loading {collection}/{id}: {e}") from e
        except Exception as e:
            raise StoreError(f"Error loading {collection}/{id}: {e}") from e

    def _get_full_list(self, collection: str, filter_str: str | None = None) -> list[Any]:
        query_params: dict[str, Any] = {}
        if filter_str:
            query_params["filter"] = filter_str
        try:
            return list(self.pb.collection(collection).get_full_list(query_params=query_params))
        except Exception as e:
            logger.error(f"Error listing {collection} (filter={filter_str!r}): {e}")
            raise StoreError(f"Error listing {collection}: {e}") from e
