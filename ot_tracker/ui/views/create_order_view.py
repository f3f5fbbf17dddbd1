"""Create Order View: new work-order form.

Required fields are marked with ``*``.  An optional JPEG photo can be
attached; it is uploaded before the order is written.

**Thin UI Rule**: Validation and persistence live in
``WorkOrderService``.
"""

from __future__ import annotations

from pathlib import Path
from tkinter import filedialog, messagebox
from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import (
    ACTIVITY_LABELS,
    CATEGORY_LABELS,
    OrdenActivity,
    OrdenCategory,
)
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.models.work_order import WorkOrder, WorkOrderInput
from ot_tracker.services.work_orders import WorkOrderService
from ot_tracker.ui.background import run_in_background
from ot_tracker.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    INPUT_HEIGHT,
    PADDING_MD,
    PADDING_SM,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_CATEGORY_BY_LABEL: dict[str, OrdenCategory] = {
    label: OrdenCategory(value) for value, label in CATEGORY_LABELS.items()
}
_ACTIVITY_BY_LABEL: dict[str, OrdenActivity] = {
    label: OrdenActivity(value) for value, label in ACTIVITY_LABELS.items()
}


class CreateOrderView(ctk.CTkFrame):
    """Form for a new work order.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    session:
        Read for the creating profile.
    work_order_service:
        Performs validation, upload and insert.
    on_created:
        Called on the main thread with the new order.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        session: SessionManager,
        work_order_service: WorkOrderService,
        on_created: Callable[[WorkOrder], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = work_order_service
        self._on_created = on_created
        self._logger = logger
        self._image_path: Optional[Path] = None

        self._build_ui()

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self, text="Nueva Orden de Trabajo", font=FONT_HEADING,
            text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        form = ctk.CTkScrollableFrame(self, fg_color="transparent")
        form.pack(fill="both", expand=True, padx=PADDING_MD)

        self._title_entry = self._entry(form, "Título *")
        self._category_menu = self._menu(form, "Tipo de trabajo *", list(CATEGORY_LABELS.values()))
        self._activity_menu = self._menu(form, "Tipo de actividad *", list(ACTIVITY_LABELS.values()))
        self._location_entry = self._entry(form, "Ubicación *")

        ctk.CTkLabel(form, text="Descripción *", font=FONT_LABEL, anchor="w").pack(fill="x", pady=(PADDING_SM, 4))
        self._description_box = ctk.CTkTextbox(form, height=120, font=FONT_BODY)
        self._description_box.pack(fill="x")

        photo_row = ctk.CTkFrame(form, fg_color="transparent")
        photo_row.pack(fill="x", pady=PADDING_MD)
        ctk.CTkButton(photo_row, text="Adjuntar foto", command=self._choose_image).pack(side="left")
        self._image_label = ctk.CTkLabel(
            photo_row, text="Sin foto", font=FONT_SMALL, text_color=TEXT_SECONDARY,
        )
        self._image_label.pack(side="left", padx=PADDING_SM)

        self._submit_button = ctk.CTkButton(
            form,
            text="Crear Orden",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            height=INPUT_HEIGHT,
            command=self._submit,
        )
        self._submit_button.pack(fill="x", pady=(0, PADDING_MD))

    @staticmethod
    def _entry(parent: ctk.CTkBaseClass, label: str) -> ctk.CTkEntry:
        ctk.CTkLabel(parent, text=label, font=FONT_LABEL, anchor="w").pack(fill="x", pady=(PADDING_SM, 4))
        entry = ctk.CTkEntry(parent, font=FONT_BODY, height=INPUT_HEIGHT)
        entry.pack(fill="x")
        return entry

    @staticmethod
    def _menu(parent: ctk.CTkBaseClass, label: str, values: list[str]) -> ctk.CTkOptionMenu:
        ctk.CTkLabel(parent, text=label, font=FONT_LABEL, anchor="w").pack(fill="x", pady=(PADDING_SM, 4))
        menu = ctk.CTkOptionMenu(parent, values=values)
        menu.set(values[0])
        menu.pack(fill="x")
        return menu

    # ------------------------------------------------------------------
    # Event Handlers
    # ------------------------------------------------------------------

    def _choose_image(self) -> None:
        selected = filedialog.askopenfilename(
            title="Seleccionar foto",
            filetypes=[("Imágenes JPEG", "*.jpg *.jpeg"), ("Todos", "*.*")],
        )
        if selected:
            self._image_path = Path(selected)
            self._image_label.configure(text=self._image_path.name)

    def _submit(self) -> None:
        form = WorkOrderInput(
            title=self._title_entry.get(),
            description=self._description_box.get("1.0", "end"),
            category=_CATEGORY_BY_LABEL[self._category_menu.get()],
            activity=_ACTIVITY_BY_LABEL[self._activity_menu.get()],
            location=self._location_entry.get(),
        )
        if not form.is_complete:
            messagebox.showwarning(
                "Campos incompletos",
                "Por favor completa todos los campos obligatorios (*).",
            )
            return

        image: Optional[bytes] = None
        if self._image_path is not None:
            try:
                image = self._image_path.read_bytes()
            except OSError as exc:
                self._logger.warning("Could not read %s: %s", self._image_path, exc)
                messagebox.showerror("Error", "Error al subir la imagen")
                return

        user = self._session.current_profile
        self._submit_button.configure(state="disabled", text="Creando...")
        run_in_background(
            self,
            lambda: self._service.create_work_order(user, form, image),
            self._on_submitted,
            name="orders-create",
        )

    def _on_submitted(self, result: ServiceResult[WorkOrder]) -> None:
        self._submit_button.configure(state="normal", text="Crear Orden")
        if not result.success or result.data is None:
            messagebox.showerror("Error", result.error or "")
            return

        messagebox.showinfo("Éxito", "Orden creada correctamente")
        self._reset()
        self._on_created(result.data)

    def _reset(self) -> None:
        self._title_entry.delete(0, "end")
        self._location_entry.delete(0, "end")
        self._description_box.delete("1.0", "end")
        self._image_path = None
        self._image_label.configure(text="Sin foto")
