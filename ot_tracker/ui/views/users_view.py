"""Users View: profile administration (administrators).

Search by name, email or sector; edit name, sector and role; delete a
profile.  Deleting a profile leaves the user's work orders in place.
The list follows a live query over the users table.

**Thin UI Rule**: All checks and writes live in ``UserService``.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import ROLE_LABELS
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.services.users import UserService
from ot_tracker.ui.background import run_in_background
from ot_tracker.ui.dispatcher import LiveBinding, UiDispatcher
from ot_tracker.ui.theme import (
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    DANGER,
    DANGER_HOVER,
    FONT_BODY,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    PADDING_MD,
    PADDING_SM,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_ROLE_BY_LABEL: dict[str, str] = {label: role for role, label in ROLE_LABELS.items()}


class UserEditDialog(ctk.CTkToplevel):
    """Modal editor for one profile's name, sector and role."""

    def __init__(
        self,
        parent: ctk.CTkFrame,
        user: UserProfile,
        on_save: Callable[[str, str, str], None],
    ) -> None:
        super().__init__(parent)
        self.title("Editar Usuario")
        self.geometry("380x330")
        self.transient(parent.winfo_toplevel())
        self._on_save = on_save

        ctk.CTkLabel(self, text=user.email, font=FONT_LABEL).pack(pady=(PADDING_MD, PADDING_SM))

        ctk.CTkLabel(self, text="Nombre", anchor="w").pack(fill="x", padx=PADDING_MD)
        self._name_entry = ctk.CTkEntry(self)
        self._name_entry.insert(0, user.name)
        self._name_entry.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_SM))

        ctk.CTkLabel(self, text="Sector", anchor="w").pack(fill="x", padx=PADDING_MD)
        self._sector_entry = ctk.CTkEntry(self)
        self._sector_entry.insert(0, user.sector or "")
        self._sector_entry.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_SM))

        ctk.CTkLabel(self, text="Rol", anchor="w").pack(fill="x", padx=PADDING_MD)
        self._role_menu = ctk.CTkOptionMenu(self, values=list(ROLE_LABELS.values()))
        self._role_menu.set(ROLE_LABELS.get(user.role, ROLE_LABELS["patient"]))
        self._role_menu.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        ctk.CTkButton(self, text="Guardar", command=self._save).pack(padx=PADDING_MD, fill="x")
        self.after(100, self.grab_set)

    def _save(self) -> None:
        self._on_save(
            self._name_entry.get(),
            self._sector_entry.get(),
            _ROLE_BY_LABEL[self._role_menu.get()],
        )
        self.destroy()


class UsersView(ctk.CTkFrame):
    """Profile list with search, edit and delete.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    session:
        Read for the acting administrator.
    user_service:
        Listing, search and admin mutations.
    dispatcher:
        Main-loop dispatcher for subscription pushes.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        session: SessionManager,
        user_service: UserService,
        dispatcher: UiDispatcher,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = user_service
        self._logger = logger
        self._live: LiveBinding[list[UserProfile]] = LiveBinding(self, dispatcher, self._on_pushed)
        self._users: list[UserProfile] = []
        self._search_entry: Optional[ctk.CTkEntry] = None
        self._list_frame: Optional[ctk.CTkScrollableFrame] = None

        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self, text="Usuarios", font=FONT_HEADING, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        self._search_entry = ctk.CTkEntry(
            self, placeholder_text="Buscar por nombre, correo o sector", font=FONT_BODY,
        )
        self._search_entry.pack(fill="x", padx=PADDING_MD)
        self._search_entry.bind("<KeyRelease>", lambda _event: self._render())

        self._list_frame = ctk.CTkScrollableFrame(self, fg_color=CONTENT_BG)
        self._list_frame.pack(fill="both", expand=True, padx=PADDING_MD, pady=PADDING_MD)

    def refresh(self) -> None:
        admin = self._session.current_profile
        if admin is None:
            self._live.release()
            return
        result = self._live.bind(
            lambda on_change: self._service.subscribe_users(admin, on_change),
        )
        if not result.success:
            messagebox.showerror("Error", result.error or "")

    def _on_pushed(self, users: list[UserProfile]) -> None:
        self._users = users
        self._render()

    def _render(self) -> None:
        for child in self._list_frame.winfo_children():
            child.destroy()

        query = self._search_entry.get() if self._search_entry else ""
        for user in self._service.search_users(self._users, query):
            row = ctk.CTkFrame(self._list_frame, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
            row.pack(fill="x", pady=(0, PADDING_SM))

            text = ctk.CTkFrame(row, fg_color="transparent")
            text.pack(side="left", fill="x", expand=True, padx=PADDING_MD, pady=PADDING_SM)
            ctk.CTkLabel(text, text=user.name or user.email, font=FONT_LABEL, anchor="w").pack(fill="x")
            ctk.CTkLabel(
                text,
                text=f"{user.email} · {user.sector or 'Sin sector'} · {ROLE_LABELS.get(user.role, user.role)}",
                font=FONT_SMALL,
                text_color=TEXT_SECONDARY,
                anchor="w",
            ).pack(fill="x")

            ctk.CTkButton(
                row, text="Eliminar", width=80, fg_color=DANGER, hover_color=DANGER_HOVER,
                command=lambda u=user: self._delete(u),
            ).pack(side="right", padx=(0, PADDING_MD))
            ctk.CTkButton(
                row, text="Editar", width=80, command=lambda u=user: self._edit(u),
            ).pack(side="right", padx=PADDING_SM)

    def _edit(self, user: UserProfile) -> None:
        admin = self._session.current_profile
        if admin is None:
            return

        def _save(name: str, sector: str, role: str) -> None:
            run_in_background(
                self,
                lambda: self._service.update_user(admin, user.id, name, sector, role),
                self._after_mutation,
                name="users-update",
            )

        UserEditDialog(self, user, _save)

    def _delete(self, user: UserProfile) -> None:
        admin = self._session.current_profile
        if admin is None:
            return
        confirm = (
            f"¿Estás seguro de eliminar a {user.name or user.email}?\n"
            "Sus órdenes de trabajo no se eliminarán."
        )
        if not messagebox.askyesno("Eliminar Usuario", confirm):
            return
        run_in_background(
            self,
            lambda: self._service.delete_user(admin, user.id),
            self._after_mutation,
            name="users-delete",
        )

    def _after_mutation(self, result: ServiceResult) -> None:
        if not result.success:
            messagebox.showerror("Error", result.error or "")
