"""Profile View: the signed-in user's own profile and logout."""

from __future__ import annotations

from tkinter import messagebox
from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import ROLE_LABELS
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.services.users import UserService
from ot_tracker.ui.background import run_in_background
from ot_tracker.ui.dispatcher import UiDispatcher
from ot_tracker.ui.theme import (
    CONTENT_BG,
    DANGER,
    DANGER_HOVER,
    FONT_BODY,
    FONT_HEADING,
    FONT_LABEL,
    PADDING_MD,
    PADDING_SM,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)


class ProfileView(ctk.CTkFrame):
    """Edit own name and sector; log out.

    The form refills itself whenever the profile subscription pushes a
    new version.  Pushes arrive on the store thread and are posted to
    the main loop through the dispatcher.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        session: SessionManager,
        user_service: UserService,
        on_logout: Callable[[], None],
        dispatcher: UiDispatcher,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = user_service
        self._on_logout = on_logout
        self._logger = logger
        self._remove_listener: Optional[Callable[[], None]] = None

        self._build_ui()
        self._fill()
        self._remove_listener = session.add_profile_listener(
            lambda _profile: dispatcher.post(self._fill),
        )
        self.bind("<Destroy>", self._on_destroy, add="+")

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self, text="Mi Perfil", font=FONT_HEADING, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        self._info_label = ctk.CTkLabel(
            self, text="", font=FONT_BODY, text_color=TEXT_SECONDARY, anchor="w", justify="left",
        )
        self._info_label.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        ctk.CTkLabel(self, text="Nombre", font=FONT_LABEL, anchor="w").pack(fill="x", padx=PADDING_MD)
        self._name_entry = ctk.CTkEntry(self, font=FONT_BODY)
        self._name_entry.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_SM))

        ctk.CTkLabel(self, text="Sector", font=FONT_LABEL, anchor="w").pack(fill="x", padx=PADDING_MD)
        self._sector_entry = ctk.CTkEntry(self, font=FONT_BODY)
        self._sector_entry.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        ctk.CTkButton(self, text="Guardar cambios", command=self._save).pack(
            fill="x", padx=PADDING_MD, pady=(0, PADDING_SM),
        )
        ctk.CTkButton(
            self, text="Cerrar sesión", fg_color=DANGER, hover_color=DANGER_HOVER,
            command=self._on_logout,
        ).pack(fill="x", padx=PADDING_MD)

    def _fill(self) -> None:
        if not self.winfo_exists():
            return
        profile = self._session.current_profile
        self._name_entry.delete(0, "end")
        self._sector_entry.delete(0, "end")
        if profile is None:
            self._info_label.configure(text="Perfil no disponible.")
            return
        self._info_label.configure(
            text=f"{profile.email}\nRol: {ROLE_LABELS.get(profile.role, profile.role)}",
        )
        self._name_entry.insert(0, profile.name)
        self._sector_entry.insert(0, profile.sector or "")

    def _save(self) -> None:
        profile = self._session.current_profile
        name, sector = self._name_entry.get(), self._sector_entry.get()
        run_in_background(
            self,
            lambda: self._service.update_own_profile(profile, name, sector),
            self._on_saved,
            name="profile-save",
        )

    def _on_saved(self, result: ServiceResult) -> None:
        if not result.success:
            messagebox.showerror("Error", result.error or "")
            return
        messagebox.showinfo("Éxito", "Perfil actualizado correctamente")

    def _on_destroy(self, event: object) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
