"""Main-loop dispatcher for subscription pushes.

Store subscriptions deliver on their own threads.  Those threads must
never call into Tk: from a foreign thread ``after()`` either raises or
blocks until the main loop answers, and the main loop may itself be
waiting on the delivering thread.  ``UiDispatcher.post`` only puts the
work on a ``queue.Queue``; the main loop drains it on an ``after``
timer.
"""

from __future__ import annotations

import queue
from functools import partial
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.stores.base import Subscription

if TYPE_CHECKING:
    import tkinter as tk

T = TypeVar("T")


class UiDispatcher:
    """Queue of callables run on the Tk main loop.

    Parameters
    ----------
    root:
        Widget whose ``after`` timer drives the drain loop.
    logger:
        Structured logger; failing tasks are logged and skipped.
    poll_ms:
        Milliseconds between drains.
    """

    def __init__(self, root: "tk.Misc", logger: StructuredLogger, poll_ms: int = 50) -> None:
        self._root = root
        self._logger = logger
        self._poll_ms = poll_ms
        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()
        self._job: Optional[str] = None

    def start(self) -> None:
        if self._job is None:
            self._job = self._root.after(self._poll_ms, self._tick)

    def stop(self) -> None:
        if self._job is not None:
            self._root.after_cancel(self._job)
            self._job = None

    def post(self, task: Callable[..., None], *args: object) -> None:
        """Schedule ``task(*args)`` on the main loop.  Safe from any thread."""
        self._queue.put(partial(task, *args))

    def drain(self) -> int:
        """Run every queued task now, on the calling thread.  Returns the count."""
        ran = 0
        while True:
            try:
                task = self._queue.get_nowait()
            except queue.Empty:
                return ran
            ran += 1
            try:
                task()
            except Exception:
                self._logger.exception("UI task %r failed", task)

    def _tick(self) -> None:
        self.drain()
        self._job = self._root.after(self._poll_ms, self._tick)


class LiveBinding(Generic[T]):
    """One view's live query: owns the handle and marshals its pushes.

    ``bind`` releases any previous handle before subscribing again, and
    the handle is released when *widget* is destroyed.  Pushes from a
    released handle that were already queued are dropped on the main
    loop by comparing epochs.

    Parameters
    ----------
    widget:
        The view owning the subscription.
    dispatcher:
        Main-loop dispatcher the pushes are posted to.
    on_push:
        Runs on the main loop with each pushed value.
    """

    def __init__(
        self,
        widget: "tk.Misc",
        dispatcher: UiDispatcher,
        on_push: Callable[[T], None],
    ) -> None:
        self._widget = widget
        self._dispatcher = dispatcher
        self._on_push = on_push
        self._handle: Optional[Subscription] = None
        self._epoch: int = 0
        widget.bind("<Destroy>", self._on_destroy, add="+")

    @property
    def active(self) -> bool:
        return self._handle is not None

    def bind(
        self,
        subscribe: Callable[[Callable[[T], None]], ServiceResult[Subscription]],
    ) -> ServiceResult[Subscription]:
        """Open a new subscription through *subscribe* (a service method)."""
        self.release()
        epoch = self._epoch
        result = subscribe(lambda value: self._dispatcher.post(self._deliver, epoch, value))
        if result.success:
            self._handle = result.data
        return result

    def release(self) -> None:
        self._epoch += 1
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.release()

    def _deliver(self, epoch: int, value: T) -> None:
        if epoch != self._epoch or not self._widget.winfo_exists():
            return
        self._on_push(value)

    def _on_destroy(self, _event: object) -> None:
        self.release()
