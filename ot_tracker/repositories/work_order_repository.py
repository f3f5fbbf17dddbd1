"""
Work Order Repository.

Data access for the ``ordenes_trabajo`` collection.
"""

from __future__ import annotations

from typing import Callable, Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.repositories.base_repository import BaseRepository
from ot_tracker.stores.base import DocumentStore, Subscription
from ot_tracker.utils.string_helpers import JsonValue


def _filters(created_by: Optional[str], status: Optional[str]) -> Optional[dict[str, JsonValue]]:
    equals: dict[str, JsonValue] = {}
    if created_by is not None:
        equals["created_by"] = created_by
    if status is not None:
        equals["status"] = status
    return equals or None


class WorkOrderRepository(BaseRepository):
    """Data access layer for WorkOrder entities."""

    COLLECTION = "ordenes_trabajo"

    def __init__(
        self,
        store: DocumentStore,
        logger: StructuredLogger,
        collection: Optional[str] = None,
    ) -> None:
        super().__init__(store, logger, collection)

    def create(self, fields: dict[str, object]) -> WorkOrder:
        """Insert a new work order under a generated key and return it."""
        document = self._serialize(fields)
        order_id = self._store.insert(self.collection, document)
        self._logger.info("Work order created: %s", order_id)
        return WorkOrder(**{**document, "id": order_id})

    def get_by_id(self, order_id: str) -> Optional[WorkOrder]:
        document = self._store.get(self.collection, order_id)
        return WorkOrder(**document) if document is not None else None

    def list_orders(
        self,
        created_by: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[WorkOrder]:
        """Fetch work orders newest first, optionally filtered by creator and status."""
        documents = self._store.query(
            self.collection,
            equals=_filters(created_by, status),
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [WorkOrder(**document) for document in documents]

    def subscribe_orders(
        self,
        on_change: Callable[[list[WorkOrder]], None],
        created_by: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Subscription:
        """Live version of :meth:`list_orders`: pushes the list on every change."""
        return self._store.subscribe_query(
            self.collection,
            self._model_callback(WorkOrder, on_change),
            equals=_filters(created_by, status),
            order_by="created_at",
            descending=True,
            limit=limit,
        )

    def update_fields(self, order_id: str, fields: dict[str, object]) -> None:
        self._store.update(self.collection, order_id, self._serialize(fields))
        self._logger.info("Work order updated: %s", order_id)

    def delete(self, order_id: str) -> None:
        self._store.delete(self.collection, order_id)
        self._logger.info("Work order deleted: %s", order_id)
