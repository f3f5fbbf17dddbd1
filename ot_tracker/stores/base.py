"""
Backend Collaborator Interfaces.

The application talks to three hosted collaborators, each behind a small
abstract interface so the services never depend on a concrete backend:

- ``DocumentStore``: key-addressed collections with get, equality
  query, create/overwrite, update, delete and push subscriptions to one
  document or to a query result.
- ``BlobStore``: opaque payload upload returning a retrievable URL.
- ``IdentityProvider``: sign-in / sign-out / session restore, emitting
  authentication-state events to registered listeners.

Supabase implementations live next to this module.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from ot_tracker.models.auth_models import AuthStateEvent, Identity
from ot_tracker.utils.string_helpers import JsonValue

__all__ = [
    "AuthStateListener",
    "BlobStore",
    "CallbackSubscription",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
    "IdentityProvider",
    "ImageUploadError",
    "QueryCallback",
    "Snapshot",
    "SnapshotCallback",
    "Subscription",
]

Document = dict[str, JsonValue]
SnapshotCallback = Callable[[Optional[Document]], None]
QueryCallback = Callable[[list[Document]], None]
Snapshot = Union[Optional[Document], list[Document]]
AuthStateListener = Callable[[AuthStateEvent, Optional[Identity]], None]


class DocumentStoreError(Exception):
    """A document-store request failed (network, permissions, bad data)."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class ImageUploadError(Exception):
    """The photo attachment could not be stored."""


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

class Subscription(ABC):
    """Cancellable handle for a push subscription.

    The owner must call :meth:`release` exactly once when done.  After
    ``release()`` returns no new delivery starts.  ``release()`` never
    waits for a callback already running, so it may be called from a
    thread that callback is itself waiting on (the Tk main loop).
    """

    @abstractmethod
    def release(self) -> None:
        """Stop deliveries.  Idempotent and non-blocking."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """``True`` until :meth:`release` is called."""


class CallbackSubscription(Subscription):
    """Subscription bookkeeping shared by every store implementation.

    The active flag is checked under a lock, but the callback runs
    outside it.  A delivery that passed the check just before
    ``release()`` may still complete; owners that must not apply such a
    late snapshot tag their callback with a generation (see
    ``SessionManager.set_profile``).

    Parameters
    ----------
    callback:
        Receives each snapshot: the document (``None`` when absent) or,
        for a query subscription, the result list.
    on_release:
        Optional hook run once, after the handle is marked inactive.
    """

    def __init__(
        self,
        callback: Callable[[Snapshot], None],
        on_release: Optional[Callable[[], None]] = None,
    ) -> None:
        self._callback: Callable[[Snapshot], None] = callback
        self._on_release: Optional[Callable[[], None]] = on_release
        self._lock: threading.Lock = threading.Lock()
        self._active: bool = True

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def deliver(self, snapshot: Snapshot) -> bool:
        """Hand *snapshot* to the callback unless released.

        Returns ``True`` when the callback ran.  Exceptions raised by the
        callback propagate to the caller.
        """
        with self._lock:
            if not self._active:
                return False
        self._callback(snapshot)
        return True

    def release(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        if self._on_release is not None:
            self._on_release()


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------

class DocumentStore(ABC):
    """Key-addressed, subscribable document backend.

    Every document carries its key under ``"id"``.  All methods raise
    :class:`DocumentStoreError` on backend failure.
    """

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Document]:
        """Return the document stored under *key*, or ``None``."""

    @abstractmethod
    def query(
        self,
        collection: str,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """Return documents whose fields equal every pair in *equals*."""

    @abstractmethod
    def put(self, collection: str, key: str, document: Document) -> Document:
        """Create or overwrite the document under *key*."""

    @abstractmethod
    def insert(self, collection: str, document: Document) -> str:
        """Create a document under a generated key and return the key."""

    @abstractmethod
    def update(self, collection: str, key: str, fields: Document) -> None:
        """Merge *fields* into the existing document under *key*."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> None:
        """Remove the document under *key* (no-op when absent)."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        key: str,
        callback: SnapshotCallback,
    ) -> Subscription:
        """Push the current document under *key*, then every change to it."""

    @abstractmethod
    def subscribe_query(
        self,
        collection: str,
        callback: QueryCallback,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Subscription:
        """Push the current result of a :meth:`query`, then every changed result."""


# ---------------------------------------------------------------------------
# Blob store
# ---------------------------------------------------------------------------

class BlobStore(ABC):
    """Opaque payload storage."""

    @abstractmethod
    def upload(self, path: str, payload: bytes, content_type: str) -> str:
        """Store *payload* at *path* and return a retrievable URL.

        Raises:
            ImageUploadError: If the upload fails.
        """


# ---------------------------------------------------------------------------
# Identity provider
# ---------------------------------------------------------------------------

class IdentityProvider(ABC):
    """Authenticates users and announces authentication-state changes.

    Listeners receive ``(SIGNED_IN, identity)`` after sign-in and session
    restore, and ``(SIGNED_OUT, None)`` after sign-out.
    """

    def __init__(self) -> None:
        self._listeners: list[AuthStateListener] = []
        self._listeners_lock: threading.Lock = threading.Lock()

    def add_listener(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register *listener* and return a callable that removes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    def _emit(self, event: AuthStateEvent, identity: Optional[Identity]) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event, identity)

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        """Authenticate with email + password and emit ``SIGNED_IN``."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the provider session and emit ``SIGNED_OUT``."""

    @abstractmethod
    def restore(self) -> Optional[Identity]:
        """Emit ``SIGNED_IN`` for a still-valid stored session, if any."""
