"""Background work for views.

Runs a blocking service call on a daemon thread and hands the result
back to the Tk main loop with ``widget.after(0, ...)``.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Callable, TypeVar

T = TypeVar("T")


def run_in_background(
    widget: tk.Misc,
    work: Callable[[], T],
    on_done: Callable[[T], None],
    name: str = "ui-task",
) -> threading.Thread:
    """Run *work* off the main thread, then ``on_done(result)`` on it.

    ``on_done`` is skipped when *widget* has been destroyed meanwhile.
    """

    def _deliver(result: T) -> None:
        if widget.winfo_exists():
            on_done(result)

    def _target() -> None:
        result = work()
        widget.after(0, _deliver, result)

    thread = threading.Thread(target=_target, name=name, daemon=True)
    thread.start()
    return thread
