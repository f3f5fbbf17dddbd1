"""Shared fixtures: in-memory backend fakes and an isolated logger."""

from __future__ import annotations

import copy
import io
import itertools
import uuid
from typing import Callable, Optional

import pytest

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import AuthStateEvent, Identity
from ot_tracker.models.user import UserProfile
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.repositories.work_order_repository import WorkOrderRepository
from ot_tracker.stores.base import (
    BlobStore,
    CallbackSubscription,
    Document,
    DocumentStore,
    DocumentStoreError,
    IdentityProvider,
    ImageUploadError,
    QueryCallback,
    SnapshotCallback,
    Subscription,
)
from ot_tracker.utils.string_helpers import JsonValue

WRITE_OPERATIONS: frozenset[str] = frozenset({"put", "insert", "update", "delete"})


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed document store delivering subscription pushes synchronously.

    Query subscribers receive the re-run query after every write to their
    collection.

    ``calls`` records ``(operation, collection, key)`` for every request.
    ``fail_on`` maps an operation name to the exception it should raise.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Document]] = {}
        self.calls: list[tuple[str, str, Optional[str]]] = []
        self.fail_on: dict[str, Exception] = {}
        self._subscribers: dict[tuple[str, str], list[CallbackSubscription]] = {}
        self._query_subscribers: dict[str, list[tuple[CallbackSubscription, Callable[[], list[Document]]]]] = {}
        self._ids = itertools.count(1)

    # -- helpers -------------------------------------------------------------

    def seed(self, collection: str, document: Document) -> None:
        self.collections.setdefault(collection, {})[str(document["id"])] = copy.deepcopy(document)

    def writes(self) -> list[tuple[str, str, Optional[str]]]:
        return [call for call in self.calls if call[0] in WRITE_OPERATIONS]

    def _record(self, operation: str, collection: str, key: Optional[str] = None) -> None:
        self.calls.append((operation, collection, key))
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def _notify(self, collection: str, key: str) -> None:
        snapshot = self.collections.get(collection, {}).get(key)
        for subscription in list(self._subscribers.get((collection, key), [])):
            subscription.deliver(copy.deepcopy(snapshot))
        for subscription, rerun in list(self._query_subscribers.get(collection, [])):
            subscription.deliver(rerun())

    # -- DocumentStore -------------------------------------------------------

    def get(self, collection: str, key: str) -> Optional[Document]:
        self._record("get", collection, key)
        document = self.collections.get(collection, {}).get(key)
        return copy.deepcopy(document)

    def query(
        self,
        collection: str,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        self._record("query", collection)
        return self._select(collection, equals, order_by, descending, limit)

    def _select(
        self,
        collection: str,
        equals: Optional[dict[str, JsonValue]],
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
    ) -> list[Document]:
        documents = [
            copy.deepcopy(document)
            for document in self.collections.get(collection, {}).values()
            if all(document.get(field) == value for field, value in (equals or {}).items())
        ]
        if order_by is not None:
            documents.sort(key=lambda doc: str(doc.get(order_by) or ""), reverse=descending)
        if limit is not None:
            documents = documents[:limit]
        return documents

    def put(self, collection: str, key: str, document: Document) -> Document:
        self._record("put", collection, key)
        stored = {**copy.deepcopy(document), "id": key}
        self.collections.setdefault(collection, {})[key] = stored
        self._notify(collection, key)
        return copy.deepcopy(stored)

    def insert(self, collection: str, document: Document) -> str:
        key = f"doc-{next(self._ids)}"
        self._record("insert", collection, key)
        self.collections.setdefault(collection, {})[key] = {**copy.deepcopy(document), "id": key}
        self._notify(collection, key)
        return key

    def update(self, collection: str, key: str, fields: Document) -> None:
        self._record("update", collection, key)
        existing = self.collections.get(collection, {}).get(key)
        if existing is not None:
            existing.update(copy.deepcopy(fields))
            self._notify(collection, key)

    def delete(self, collection: str, key: str) -> None:
        self._record("delete", collection, key)
        if self.collections.get(collection, {}).pop(key, None) is not None:
            self._notify(collection, key)

    def subscribe(
        self,
        collection: str,
        key: str,
        callback: SnapshotCallback,
    ) -> Subscription:
        self._record("subscribe", collection, key)
        handles = self._subscribers.setdefault((collection, key), [])

        def _remove() -> None:
            if subscription in handles:
                handles.remove(subscription)

        subscription = CallbackSubscription(callback, on_release=_remove)
        handles.append(subscription)
        subscription.deliver(copy.deepcopy(self.collections.get(collection, {}).get(key)))
        return subscription

    def subscribe_query(
        self,
        collection: str,
        callback: QueryCallback,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Subscription:
        self._record("subscribe_query", collection)
        handles = self._query_subscribers.setdefault(collection, [])

        def _rerun() -> list[Document]:
            return self._select(collection, equals, order_by, descending, limit)

        def _remove() -> None:
            handles[:] = [entry for entry in handles if entry[0] is not subscription]

        subscription = CallbackSubscription(callback, on_release=_remove)
        handles.append((subscription, _rerun))
        subscription.deliver(_rerun())
        return subscription

    def subscriber_count(self, collection: str, key: str) -> int:
        return len(self._subscribers.get((collection, key), []))

    def query_subscriber_count(self, collection: str) -> int:
        return len(self._query_subscribers.get(collection, []))


class FakeBlobStore(BlobStore):
    def __init__(self) -> None:
        self.uploads: list[tuple[str, bytes, str]] = []
        self.fail: bool = False

    def upload(self, path: str, payload: bytes, content_type: str) -> str:
        if self.fail:
            raise ImageUploadError("Error al subir la imagen")
        self.uploads.append((path, payload, content_type))
        return f"https://cdn.example.test/{path}"


class FakeIdentityProvider(IdentityProvider):
    """Accepts the credentials registered with :meth:`register`."""

    def __init__(self) -> None:
        super().__init__()
        self._accounts: dict[str, tuple[str, Identity]] = {}
        self.stored_identity: Optional[Identity] = None
        self.sign_in_error: Optional[Exception] = None

    def register(self, identity: Identity, password: str) -> None:
        self._accounts[identity.email or identity.id] = (password, identity)

    def sign_in(self, email: str, password: str) -> Identity:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        account = self._accounts.get(email)
        if account is None or account[0] != password:
            raise ValueError("Invalid login credentials")
        identity = account[1]
        self.stored_identity = identity
        self._emit(AuthStateEvent.SIGNED_IN, identity)
        return identity

    def sign_out(self) -> None:
        self.stored_identity = None
        self._emit(AuthStateEvent.SIGNED_OUT, None)

    def restore(self) -> Optional[Identity]:
        if self.stored_identity is None:
            return None
        self._emit(AuthStateEvent.SIGNED_IN, self.stored_identity)
        return self.stored_identity


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def logger(tmp_path) -> StructuredLogger:
    """A logger with its own name so handlers never leak between tests."""
    return StructuredLogger(
        name=f"test.{uuid.uuid4().hex}",
        stream=io.StringIO(),
        log_file=str(tmp_path / "test.log"),
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def blobs() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def session(logger) -> SessionManager:
    return SessionManager(logger=logger)


@pytest.fixture
def user_repo(store, logger) -> UserRepository:
    return UserRepository(store=store, logger=logger)


@pytest.fixture
def work_order_repo(store, logger) -> WorkOrderRepository:
    return WorkOrderRepository(store=store, logger=logger)


@pytest.fixture
def admin() -> UserProfile:
    return UserProfile(id="admin-1", name="Ana Admin", email="ana@hospital.cl", role="admin", sector="Mantención")


@pytest.fixture
def staff() -> UserProfile:
    return UserProfile(id="staff-1", name="Pedro Pérez", email="pedro@hospital.cl", role="patient", sector="Urgencia")


def failing(message: str = "backend down") -> DocumentStoreError:
    return DocumentStoreError(message)
