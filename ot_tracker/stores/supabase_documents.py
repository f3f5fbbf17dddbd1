"""
Supabase Document Store.

Maps the generic document-store operations onto PostgREST tables: one
table per collection, primary key column ``id``.  The tables use snake_case
columns only, and rows are read and written under the same names that
the repositories use.  Documents carrying the previous mobile client's
camelCase keys are normalised by the models, not here.

Subscriptions are served by a daemon polling thread per handle that
re-reads the row (or re-runs the query) every ``poll_interval_s`` seconds
and pushes a snapshot whenever it differs from the last one delivered.
The first snapshot is pushed immediately.
"""

from __future__ import annotations

import threading
import uuid
from typing import Callable, Optional, TypeVar

from ot_tracker.database import DatabaseManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.stores.base import (
    CallbackSubscription,
    Document,
    DocumentStore,
    DocumentStoreError,
    QueryCallback,
    Snapshot,
    SnapshotCallback,
    Subscription,
)
from ot_tracker.utils.string_helpers import JsonValue

T = TypeVar("T")

_KEY_FIELD: str = "id"
_NO_SNAPSHOT: object = object()


class PollingSubscription(CallbackSubscription):
    """Subscription backed by a daemon thread that polls one fetch.

    *fetch* returns either a single document (or ``None``) or a query
    result list.  Fetch failures are logged and the next poll proceeds
    on schedule; the last delivered snapshot stays in place until a
    fetch succeeds.  A callback that raises is logged and the loop keeps
    running, so one bad snapshot never ends the subscription.
    """

    def __init__(
        self,
        fetch: Callable[[], Snapshot],
        callback: Callable[[Snapshot], None],
        interval_s: float,
        logger: StructuredLogger,
        name: str,
    ) -> None:
        self._stop_event: threading.Event = threading.Event()
        super().__init__(callback, on_release=self._stop_event.set)
        self._fetch = fetch
        self._interval_s: float = interval_s
        self._logger: StructuredLogger = logger
        self._thread: threading.Thread = threading.Thread(
            target=self._run_loop,
            name=f"subscription:{name}",
            daemon=True,
        )

    def start(self) -> "PollingSubscription":
        self._thread.start()
        return self

    @property
    def running(self) -> bool:
        """``True`` while the polling thread is alive."""
        return self._thread.is_alive()

    def _run_loop(self) -> None:
        last: object = _NO_SNAPSHOT
        while not self._stop_event.is_set():
            try:
                snapshot = self._fetch()
            except DocumentStoreError as exc:
                self._logger.warning(
                    "Subscription poll failed for %s: %s", self._thread.name, exc,
                )
            else:
                if snapshot != last:
                    last = snapshot
                    try:
                        self.deliver(snapshot)
                    except Exception:
                        self._logger.exception(
                            "Subscriber callback failed for %s", self._thread.name,
                        )
            self._stop_event.wait(self._interval_s)


class SupabaseDocumentStore(DocumentStore):
    """``DocumentStore`` over Supabase PostgREST tables.

    Parameters
    ----------
    db:
        Database manager providing the Supabase client.
    logger:
        Structured JSON logger.
    poll_interval_s:
        Seconds between subscription polls.
    """

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        poll_interval_s: float = 2.0,
    ) -> None:
        self._db: DatabaseManager = db
        self._logger: StructuredLogger = logger
        self._poll_interval_s: float = poll_interval_s

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    def get(self, collection: str, key: str) -> Optional[Document]:
        def _op() -> Optional[Document]:
            response = (
                self._table(collection)
                .select("*")
                .eq(_KEY_FIELD, key)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        return self._run(_op, f"get {collection}/{key}")

    def query(
        self,
        collection: str,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        def _op() -> list[Document]:
            builder = self._table(collection).select("*")
            for field, value in (equals or {}).items():
                builder = builder.eq(field, value)
            if order_by is not None:
                builder = builder.order(order_by, desc=descending)
            if limit is not None:
                builder = builder.limit(limit)
            response = builder.execute()
            return list(response.data or [])

        return self._run(_op, f"query {collection}")

    def put(self, collection: str, key: str, document: Document) -> Document:
        payload: Document = {**document, _KEY_FIELD: key}

        def _op() -> Document:
            response = self._table(collection).upsert(payload).execute()
            rows = response.data or []
            return rows[0] if rows else payload

        return self._run(_op, f"put {collection}/{key}")

    def insert(self, collection: str, document: Document) -> str:
        key = str(uuid.uuid4())
        payload: Document = {**document, _KEY_FIELD: key}

        def _op() -> str:
            self._table(collection).insert(payload).execute()
            return key

        return self._run(_op, f"insert {collection}/{key}")

    def update(self, collection: str, key: str, fields: Document) -> None:
        def _op() -> None:
            self._table(collection).update(fields).eq(_KEY_FIELD, key).execute()

        self._run(_op, f"update {collection}/{key}")

    def delete(self, collection: str, key: str) -> None:
        def _op() -> None:
            self._table(collection).delete().eq(_KEY_FIELD, key).execute()

        self._run(_op, f"delete {collection}/{key}")

    def subscribe(
        self,
        collection: str,
        key: str,
        callback: SnapshotCallback,
    ) -> Subscription:
        subscription = PollingSubscription(
            fetch=lambda: self.get(collection, key),
            callback=callback,
            interval_s=self._poll_interval_s,
            logger=self._logger,
            name=f"{collection}/{key}",
        )
        self._logger.debug("Subscribing to %s/%s", collection, key)
        return subscription.start()

    def subscribe_query(
        self,
        collection: str,
        callback: QueryCallback,
        equals: Optional[dict[str, JsonValue]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Subscription:
        subscription = PollingSubscription(
            fetch=lambda: self.query(
                collection, equals=equals, order_by=order_by, descending=descending, limit=limit,
            ),
            callback=callback,
            interval_s=self._poll_interval_s,
            logger=self._logger,
            name=f"{collection}?{equals or {}}",
        )
        self._logger.debug("Subscribing to query on %s %s", collection, equals or {})
        return subscription.start()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _table(self, collection: str):
        return self._db.supabase.table(collection)

    def _run(self, operation: Callable[[], T], operation_name: str) -> T:
        """Execute *operation*, translating any backend failure."""
        try:
            return operation()
        except Exception as exc:
            self._logger.error("Document store %s failed: %s", operation_name, exc)
            raise DocumentStoreError(
                f"Document store {operation_name} failed: {exc}",
                original_error=exc,
            ) from exc
