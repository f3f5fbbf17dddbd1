"""Home View: greeting, order summary, recent orders and hospital contact.

The summary follows ``HomeService.subscribe_summary`` so it stays current
while the tab is open.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import ROLE_LABELS, STATUS_LABELS
from ot_tracker.models.service_models import HomeSummary
from ot_tracker.services.home import HOSPITAL_INFO, HomeService, greeting_for
from ot_tracker.ui.dispatcher import LiveBinding, UiDispatcher
from ot_tracker.ui.theme import (
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_HEADING,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    PADDING_MD,
    PADDING_SM,
    STATUS_COLORS,
    STATUS_UNKNOWN,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_RECENT_SHOWN: int = 3


class HomeView(ctk.CTkFrame):
    """Landing tab after login.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    session:
        Read for the signed-in profile.
    home_service:
        Live dashboard summary.
    on_new_order / on_view_orders:
        Quick actions; the shell switches tabs.
    dispatcher:
        Main-loop dispatcher for subscription pushes.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        session: SessionManager,
        home_service: HomeService,
        on_new_order: Callable[[], None],
        on_view_orders: Callable[[], None],
        dispatcher: UiDispatcher,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = home_service
        self._logger = logger
        self._live: LiveBinding[HomeSummary] = LiveBinding(self, dispatcher, self._render)

        self._counts: dict[str, ctk.CTkLabel] = {}
        self._recent_frame: Optional[ctk.CTkFrame] = None
        self._message_label: Optional[ctk.CTkLabel] = None

        self._build_ui(on_new_order, on_view_orders)
        self.refresh()

    def _build_ui(self, on_new_order: Callable[[], None], on_view_orders: Callable[[], None]) -> None:
        profile = self._session.current_profile
        name = (profile.name or profile.email) if profile else ""
        role = ROLE_LABELS.get(profile.role, profile.role) if profile else ""

        ctk.CTkLabel(
            self, text=f"{greeting_for(datetime.now().hour)}, {name}",
            font=FONT_HEADING, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, 0))
        ctk.CTkLabel(
            self, text=role, font=FONT_SUBTITLE, text_color=TEXT_SECONDARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        stats = ctk.CTkFrame(self, fg_color="transparent")
        stats.pack(fill="x", padx=PADDING_MD)
        for key, label in (
            ("total", "Total"),
            ("open", "Abiertos"),
            ("in_progress", "En Progreso"),
            ("resolved", "Resueltos"),
        ):
            card = ctk.CTkFrame(stats, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
            card.pack(side="left", fill="x", expand=True, padx=(0, PADDING_SM))
            self._counts[key] = ctk.CTkLabel(card, text="-", font=FONT_HEADING, text_color=TEXT_PRIMARY)
            self._counts[key].pack(pady=(PADDING_SM, 0))
            ctk.CTkLabel(card, text=label, font=FONT_SMALL, text_color=TEXT_SECONDARY).pack(
                pady=(0, PADDING_SM),
            )

        actions = ctk.CTkFrame(self, fg_color="transparent")
        actions.pack(fill="x", padx=PADDING_MD, pady=PADDING_MD)
        ctk.CTkButton(actions, text="Nueva Orden", command=on_new_order).pack(
            side="left", padx=(0, PADDING_SM),
        )
        ctk.CTkButton(actions, text="Ver Órdenes", command=on_view_orders).pack(side="left")

        ctk.CTkLabel(
            self, text="Órdenes recientes", font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", padx=PADDING_MD)
        self._message_label = ctk.CTkLabel(self, text="", font=FONT_SMALL, text_color=ERROR_TEXT)
        self._message_label.pack(fill="x", padx=PADDING_MD)
        self._recent_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._recent_frame.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))

        contact = ctk.CTkFrame(self, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
        contact.pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_MD))
        ctk.CTkLabel(contact, text=HOSPITAL_INFO["name"], font=FONT_LABEL, anchor="w").pack(
            fill="x", padx=PADDING_MD, pady=(PADDING_SM, 0),
        )
        ctk.CTkLabel(
            contact,
            text=f"{HOSPITAL_INFO['address']}\n{HOSPITAL_INFO['phone']} · {HOSPITAL_INFO['email']}",
            font=FONT_SMALL, text_color=TEXT_SECONDARY, anchor="w", justify="left",
        ).pack(fill="x", padx=PADDING_MD, pady=(0, PADDING_SM))

    def refresh(self) -> None:
        user = self._session.current_profile
        if user is None:
            self._live.release()
            return
        result = self._live.bind(
            lambda on_change: self._service.subscribe_summary(user, on_change),
        )
        if not result.success and self._message_label is not None:
            self._message_label.configure(text=result.error or "")

    def _render(self, summary: HomeSummary) -> None:
        self._message_label.configure(text="")
        self._counts["total"].configure(text=str(summary.total))
        self._counts["open"].configure(text=str(summary.open))
        self._counts["in_progress"].configure(text=str(summary.in_progress))
        self._counts["resolved"].configure(text=str(summary.resolved))

        for child in self._recent_frame.winfo_children():
            child.destroy()
        if not summary.recent:
            ctk.CTkLabel(
                self._recent_frame, text="No hay órdenes de trabajo.",
                font=FONT_BODY, text_color=TEXT_SECONDARY, anchor="w",
            ).pack(fill="x")
            return

        for order in summary.recent[:_RECENT_SHOWN]:
            row = ctk.CTkFrame(self._recent_frame, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
            row.pack(fill="x", pady=(0, PADDING_SM))
            ctk.CTkLabel(
                row, text=order.title, font=FONT_LABEL, anchor="w",
            ).pack(side="left", fill="x", expand=True, padx=PADDING_MD, pady=PADDING_SM)
            ctk.CTkLabel(
                row,
                text=STATUS_LABELS.get(order.status, order.status),
                font=FONT_SMALL,
                fg_color=STATUS_COLORS.get(order.status, STATUS_UNKNOWN),
                text_color=TEXT_LIGHT,
                corner_radius=CORNER_RADIUS,
            ).pack(side="right", padx=PADDING_MD)
