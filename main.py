"""
Work-Order Tracker Desktop Application Entry Point.

Bootstraps the entire dependency graph via constructor injection and
launches the CustomTkinter GUI.  Every subsystem is wired here, with no
module-level globals.

Usage::

    python main.py
"""

from __future__ import annotations

import sys
import traceback

from ot_tracker.auth import SessionManager
from ot_tracker.config import get_config
from ot_tracker.database import DatabaseManager
from ot_tracker.logger import StructuredLogger, get_logger
from ot_tracker.services import create_services
from ot_tracker.ui.app_shell import AppShell


def main() -> None:
    """Application entry point: wire dependencies and launch the GUI."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting work-order tracker...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Backend connection (single Supabase client)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )

    # ------------------------------------------------------------------
    # 3. Session Manager
    # ------------------------------------------------------------------
    session = SessionManager(logger=get_logger("session"))

    # ------------------------------------------------------------------
    # 4. Service Container (stores + repositories + services)
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config, session=session)

    # ------------------------------------------------------------------
    # 5. Launch the GUI (blocks until window closes)
    # ------------------------------------------------------------------
    logger.info("Launching GUI...")
    app = AppShell(
        config=config,
        session=session,
        services=services,
        logger=get_logger("ui"),
    )
    try:
        app.mainloop()
    finally:
        # Releases the profile subscription if the window closed abnormally.
        services["session_controller"].stop()
        logger.info("Work-order tracker shut down.")


def _show_fatal_error(exc: BaseException) -> None:
    """Display a fatal-error dialog so double-click users get feedback.

    Uses ``tkinter.messagebox`` (stdlib) rather than CustomTkinter so
    the dialog works even when CTk initialisation itself is the thing
    that failed.
    """
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        import tkinter
        from tkinter import messagebox

        root = tkinter.Tk()
        root.withdraw()
        messagebox.showerror(
            title="Órdenes de Trabajo - Error fatal",
            message=(
                "La aplicación encontró un error inesperado y no puede "
                "continuar.\n\n"
                f"{type(exc).__name__}: {exc}"
            ),
            detail=detail,
        )
        root.destroy()
    except Exception:
        # Headless environment or missing Tcl/Tk.
        sys.stderr.write(
            f"FATAL: {type(exc).__name__}: {exc}\n{detail}"
        )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _show_fatal_error(exc)
        sys.exit(1)
