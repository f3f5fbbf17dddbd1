"""
Base Repository.

Provides shared infrastructure for all repositories:
- DocumentStore reference (every read and write goes through it)
- Logger reference
- Collection name, overridable per instance from configuration
- Timestamp serialisation for outgoing documents
- Row-to-model conversion for query subscriptions
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ot_tracker.logger import StructuredLogger
from ot_tracker.stores.base import Document, DocumentStore, QueryCallback
from ot_tracker.utils.timestamps import to_store_value

M = TypeVar("M", bound=BaseModel)


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__.

    Store failures propagate as ``DocumentStoreError``; services decide
    how to surface them.
    """

    COLLECTION: str = ""

    def __init__(
        self,
        store: DocumentStore,
        logger: StructuredLogger,
        collection: Optional[str] = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self.collection: str = collection or self.COLLECTION

    @property
    def store(self) -> DocumentStore:
        """Returns the underlying document store."""
        return self._store

    @staticmethod
    def _serialize(data: dict[str, object]) -> Document:
        """Convert ``datetime`` values to their stored string form."""
        document: Document = {}
        for key, value in data.items():
            if isinstance(value, datetime):
                document[key] = to_store_value(value)
            else:
                document[key] = value
        return document

    def _model_callback(
        self,
        model: type[M],
        on_change: Callable[[list[M]], None],
    ) -> QueryCallback:
        """Wrap *on_change* so it receives models instead of raw rows.

        Rows that fail validation are logged and left out of the list
        rather than failing the whole push.
        """

        def _deliver(documents: list[Document]) -> None:
            models: list[M] = []
            for document in documents:
                try:
                    models.append(model(**document))
                except ValidationError as exc:
                    self._logger.warning(
                        "Skipping malformed %s document %s: %s",
                        self.collection, document.get("id"), exc,
                    )
            on_change(models)

        return _deliver
