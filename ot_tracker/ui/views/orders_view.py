"""Orders View: work-order list.

Live list of the visible orders with a search box (title / description),
a status filter and, for administrators, per-row status change and
deletion.  The list follows a query subscription, so changes made by
anyone appear without a manual reload.

**Thin UI Rule**: Zero business logic.  Filtering by visibility and
status is done by ``WorkOrderService``; this view only renders.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import CATEGORY_LABELS, STATUS_LABELS, OrdenStatus
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services.work_orders import WorkOrderService
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
    STATUS_COLORS,
    STATUS_UNKNOWN,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_ALL_STATUSES: str = "Todos"
_STATUS_BY_LABEL: dict[str, str] = {label: status for status, label in STATUS_LABELS.items()}


class OrdersView(ctk.CTkFrame):
    """List of the work orders visible to the signed-in user.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    session:
        Read for the current profile.
    work_order_service:
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
        work_order_service: WorkOrderService,
        dispatcher: UiDispatcher,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = work_order_service
        self._logger = logger
        self._live: LiveBinding[list[WorkOrder]] = LiveBinding(self, dispatcher, self._on_pushed)

        self._orders: list[WorkOrder] = []
        self._search_entry: Optional[ctk.CTkEntry] = None
        self._status_menu: Optional[ctk.CTkOptionMenu] = None
        self._list_frame: Optional[ctk.CTkScrollableFrame] = None
        self._message_label: Optional[ctk.CTkLabel] = None

        self._build_ui()
        self.refresh()

    # ------------------------------------------------------------------
    # Widget creation
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        ctk.CTkLabel(
            self, text="Órdenes de Trabajo", font=FONT_HEADING,
            text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))

        toolbar = ctk.CTkFrame(self, fg_color="transparent")
        toolbar.pack(fill="x", padx=PADDING_MD)

        self._search_entry = ctk.CTkEntry(
            toolbar, placeholder_text="Buscar por título o descripción", font=FONT_BODY,
        )
        self._search_entry.pack(side="left", fill="x", expand=True, padx=(0, PADDING_SM))
        self._search_entry.bind("<KeyRelease>", lambda _event: self._render())

        self._status_menu = ctk.CTkOptionMenu(
            toolbar,
            values=[_ALL_STATUSES, *STATUS_LABELS.values()],
            command=lambda _choice: self.refresh(),
        )
        self._status_menu.set(_ALL_STATUSES)
        self._status_menu.pack(side="left", padx=(0, PADDING_SM))

        ctk.CTkButton(toolbar, text="Actualizar", width=100, command=self.refresh).pack(side="left")

        self._message_label = ctk.CTkLabel(
            self, text="", font=FONT_SMALL, text_color=TEXT_SECONDARY,
        )
        self._message_label.pack(fill="x", padx=PADDING_MD, pady=(PADDING_SM, 0))

        self._list_frame = ctk.CTkScrollableFrame(self, fg_color=CONTENT_BG)
        self._list_frame.pack(fill="both", expand=True, padx=PADDING_MD, pady=PADDING_MD)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """(Re)subscribe to the visible orders for the current status filter."""
        user = self._session.current_profile
        if user is None:
            self._live.release()
            self._orders = []
            self._render()
            return

        status = _STATUS_BY_LABEL.get(self._status_menu.get()) if self._status_menu else None
        result = self._live.bind(
            lambda on_change: self._service.subscribe_work_orders(user, on_change, status=status),
        )
        if not result.success:
            self._orders = []
            self._render()
            messagebox.showerror("Error", result.error or "")

    def _on_pushed(self, orders: list[WorkOrder]) -> None:
        self._orders = orders
        self._render()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render(self) -> None:
        if self._list_frame is None:
            return
        for child in self._list_frame.winfo_children():
            child.destroy()

        query = self._search_entry.get() if self._search_entry else ""
        visible = self._service.search_work_orders(self._orders, query)

        if not visible:
            filtered = bool(query.strip()) or self._status_menu.get() != _ALL_STATUSES
            self._message_label.configure(
                text="No se encontraron órdenes con los filtros aplicados"
                if filtered else "Aún no se han creado órdenes",
            )
            return
        self._message_label.configure(text=f"{len(visible)} órdenes")

        is_admin = self._session.is_admin
        for order in visible:
            self._render_row(order, is_admin)

    def _render_row(self, order: WorkOrder, is_admin: bool) -> None:
        row = ctk.CTkFrame(self._list_frame, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
        row.pack(fill="x", pady=(0, PADDING_SM))

        text = ctk.CTkFrame(row, fg_color="transparent")
        text.pack(side="left", fill="x", expand=True, padx=PADDING_MD, pady=PADDING_SM)
        ctk.CTkLabel(
            text, text=order.title, font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x")
        ctk.CTkLabel(
            text,
            text=(
                f"{CATEGORY_LABELS.get(order.category, order.category)} · {order.location} · "
                f"{order.created_by_name} · {order.created_at.strftime('%d-%m-%Y')}"
            ),
            font=FONT_SMALL,
            text_color=TEXT_SECONDARY,
            anchor="w",
        ).pack(fill="x")

        status_label = STATUS_LABELS.get(order.status, order.status)
        if not is_admin:
            ctk.CTkLabel(
                row,
                text=status_label,
                font=FONT_SMALL,
                fg_color=STATUS_COLORS.get(order.status, STATUS_UNKNOWN),
                text_color=TEXT_LIGHT,
                corner_radius=CORNER_RADIUS,
            ).pack(side="right", padx=PADDING_MD)
            return

        ctk.CTkButton(
            row,
            text="Eliminar",
            width=80,
            fg_color=DANGER,
            hover_color=DANGER_HOVER,
            command=lambda: self._delete(order),
        ).pack(side="right", padx=(0, PADDING_MD))

        menu = ctk.CTkOptionMenu(
            row,
            values=list(STATUS_LABELS.values()),
            width=130,
            command=lambda choice: self._change_status(order, choice),
        )
        menu.set(status_label)
        menu.pack(side="right", padx=PADDING_SM)

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    def _change_status(self, order: WorkOrder, label: str) -> None:
        user = self._session.current_profile
        status = _STATUS_BY_LABEL.get(label, OrdenStatus.OPEN)
        if user is None or status == order.status:
            return
        run_in_background(
            self,
            lambda: self._service.update_status(user, order.id, status),
            self._after_mutation,
            name="orders-status",
        )

    def _delete(self, order: WorkOrder) -> None:
        user = self._session.current_profile
        if user is None:
            return
        if not messagebox.askyesno("Eliminar Orden", f"¿Eliminar la orden \"{order.title}\"?"):
            return
        run_in_background(
            self,
            lambda: self._service.delete_work_order(user, order.id),
            self._after_mutation,
            name="orders-delete",
        )

    def _after_mutation(self, result: ServiceResult) -> None:
        # Successful changes come back through the subscription.
        if not result.success:
            messagebox.showerror("Error", result.error or "")
