"""
User Repository.

Data access for profile documents in the ``users`` collection.  Exposes
both raw documents (identity reconciliation copies them field-for-field)
and validated ``UserProfile`` models.
"""

from __future__ import annotations

from typing import Callable, Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.user import UserProfile
from ot_tracker.repositories.base_repository import BaseRepository
from ot_tracker.stores.base import (
    Document,
    DocumentStore,
    SnapshotCallback,
    Subscription,
)


class UserRepository(BaseRepository):
    """Data access layer for UserProfile entities."""

    COLLECTION = "users"

    def __init__(
        self,
        store: DocumentStore,
        logger: StructuredLogger,
        collection: Optional[str] = None,
    ) -> None:
        super().__init__(store, logger, collection)

    # -- Raw documents -------------------------------------------------------

    def get_document(self, user_id: str) -> Optional[Document]:
        """Fetch the raw profile document keyed by *user_id*."""
        return self._store.get(self.collection, user_id)

    def find_documents_by_email(self, email: str) -> list[Document]:
        """All raw profile documents whose ``email`` equals *email* exactly."""
        return self._store.query(self.collection, equals={"email": email})

    def put_document(self, user_id: str, document: Document) -> Document:
        """Create or overwrite the profile document keyed by *user_id*."""
        return self._store.put(self.collection, user_id, self._serialize(document))

    # -- Models --------------------------------------------------------------

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        document = self.get_document(user_id)
        return UserProfile(**document) if document is not None else None

    def get_all(self) -> list[UserProfile]:
        """Fetch all profiles, newest first."""
        documents = self._store.query(
            self.collection, order_by="created_at", descending=True,
        )
        return [UserProfile(**document) for document in documents]

    def update_fields(self, user_id: str, fields: dict[str, object]) -> None:
        self._store.update(self.collection, user_id, self._serialize(fields))
        self._logger.info("Profile updated: %s", user_id)

    def delete(self, user_id: str) -> None:
        """Remove the profile document only; work orders are left as they are."""
        self._store.delete(self.collection, user_id)
        self._logger.info("Profile deleted: %s", user_id)

    def subscribe(self, user_id: str, callback: SnapshotCallback) -> Subscription:
        """Push the profile document keyed by *user_id* on every change."""
        return self._store.subscribe(self.collection, user_id, callback)

    def subscribe_all(self, on_change: Callable[[list[UserProfile]], None]) -> Subscription:
        """Push every profile, newest first, on each change to the collection."""
        return self._store.subscribe_query(
            self.collection,
            self._model_callback(UserProfile, on_change),
            order_by="created_at",
            descending=True,
        )
