"""Login View: Authentication Screen.

Email + password form.  Authenticates through ``AuthService`` on a
background thread; profile reconciliation happens behind the provider's
``SIGNED_IN`` event before ``on_login_success`` fires.

**Thin UI Rule**: This module contains ZERO business logic.  It
gathers inputs, delegates to ``AuthService``, and displays results.
"""

from __future__ import annotations

import threading
import tkinter as tk
from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.auth_models import MSG_MISSING_CREDENTIALS
from ot_tracker.services.auth_service import AuthService
from ot_tracker.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    INPUT_BG,
    INPUT_BORDER,
    INPUT_HEIGHT,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_CARD_WIDTH: int = 400
_BUTTON_HEIGHT: int = 44


class LoginView(ctk.CTkFrame):
    """Full-screen login frame.

    Parameters
    ----------
    parent:
        The root ``CTk`` window this frame belongs to.
    auth_service:
        Authentication service.
    on_login_success:
        Callback invoked (on the main thread) after successful login.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        auth_service: AuthService,
        on_login_success: Callable[[], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._auth_service: AuthService = auth_service
        self._on_login_success: Callable[[], None] = on_login_success
        self._logger: StructuredLogger = logger

        self._email_entry: Optional[ctk.CTkEntry] = None
        self._password_entry: Optional[ctk.CTkEntry] = None
        self._login_button: Optional[ctk.CTkButton] = None
        self._error_label: Optional[ctk.CTkLabel] = None

        self._build_ui()

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self.grid_columnconfigure(0, weight=1)

        card = ctk.CTkFrame(
            self,
            width=_CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color="#e0e0e0",
        )
        card.grid(row=1, column=0)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        ctk.CTkLabel(
            inner,
            text="Hospital Collipulli",
            font=FONT_BRAND,
            text_color=ACCENT_PRIMARY,
        ).pack(pady=(0, 2))

        ctk.CTkLabel(
            inner,
            text="Órdenes de Trabajo de Mantención",
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_LG))

        ctk.CTkLabel(
            inner, text="CORREO ELECTRÓNICO", font=FONT_LABEL,
            text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        self._email_entry = ctk.CTkEntry(
            inner,
            placeholder_text="nombre@hospital.cl",
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._email_entry.pack(fill="x", pady=(0, PADDING_MD))

        ctk.CTkLabel(
            inner, text="CONTRASEÑA", font=FONT_LABEL,
            text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, 4))
        self._password_entry = ctk.CTkEntry(
            inner,
            placeholder_text="••••••••",
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*",
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._password_entry.pack(fill="x", pady=(0, PADDING_LG))

        self._login_button = ctk.CTkButton(
            inner,
            text="Ingresar",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=_BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_login,
        )
        self._login_button.pack(fill="x", pady=(0, PADDING_SM))

        self._error_label = ctk.CTkLabel(
            inner,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=_CARD_WIDTH - 80,
        )

        self._email_entry.bind("<Return>", self._on_enter_key)
        self._password_entry.bind("<Return>", self._on_enter_key)

    # ------------------------------------------------------------------
    # Event Handlers
    # ------------------------------------------------------------------

    def _on_enter_key(self, event: tk.Event[tk.Misc]) -> None:
        self._handle_login()

    def _handle_login(self) -> None:
        """Gather inputs and start background auth."""
        email = self._email_entry.get().strip()
        password = self._password_entry.get()

        if not email or not password:
            self._show_error(MSG_MISSING_CREDENTIALS)
            return

        self._set_loading(True)
        self._clear_error()

        threading.Thread(
            target=self._authenticate,
            args=(email, password),
            name="login",
            daemon=True,
        ).start()

    def _authenticate(self, email: str, password: str) -> None:
        """Background thread: delegate to AuthService.login().

        All UI mutations are dispatched back via ``self.after(0, ...)``.
        """
        result = self._auth_service.login(email, password)
        if result.success:
            self.after(0, self._on_login_success)
            return

        def show_login_result() -> None:
            self._set_loading(False)
            self._show_error(result.error_message or "")

        self.after(0, show_login_result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def show_message(self, message: str) -> None:
        """Display *message* below the login button."""
        self._show_error(message)

    def _show_error(self, message: str) -> None:
        if self._error_label is not None:
            self._error_label.configure(text=message)
            self._error_label.pack(fill="x")

    def _clear_error(self) -> None:
        if self._error_label is not None:
            self._error_label.configure(text="")
            self._error_label.pack_forget()

    def _set_loading(self, loading: bool) -> None:
        if self._login_button is None:
            return
        if loading:
            self._login_button.configure(text="Ingresando...", state="disabled")
        else:
            self._login_button.configure(text="Ingresar", state="normal")
