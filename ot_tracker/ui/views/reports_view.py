"""Reports View: statistics and CSV export (administrators).

**Thin UI Rule**: Counting and CSV generation live in ``ReportService``.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Optional

import customtkinter as ctk

from ot_tracker.auth import SessionManager
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import CATEGORY_LABELS
from ot_tracker.models.service_models import OrderStatistics, ServiceResult
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services.reports import ExportError, ReportService
from ot_tracker.ui.background import run_in_background
from ot_tracker.ui.theme import (
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_LABEL,
    PADDING_MD,
    PADDING_SM,
    STATUS_COLORS,
    STATUS_UNKNOWN,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)

_STAT_ROWS: tuple[tuple[str, str, str], ...] = (
    ("resolved", "Resueltas / Cerradas", STATUS_COLORS["resolved"]),
    ("open", "Abiertas / Pendientes", STATUS_COLORS["open"]),
    ("in_progress", "En Progreso", STATUS_COLORS["in_progress"]),
    ("other", "Otros", STATUS_UNKNOWN),
)


class ReportsView(ctk.CTkFrame):
    """Status breakdown, per-category counts and the export button.

    Parameters
    ----------
    parent:
        Content container provided by the Host Shell.
    session:
        Read for the current profile.
    report_service:
        Loads orders and builds the statistics and CSV.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        parent: ctk.CTkFrame,
        session: SessionManager,
        report_service: ReportService,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._session = session
        self._service = report_service
        self._logger = logger
        self._orders: list[WorkOrder] = []
        self._body: Optional[ctk.CTkScrollableFrame] = None

        self._build_ui()
        self.refresh()

    def _build_ui(self) -> None:
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.pack(fill="x", padx=PADDING_MD, pady=(PADDING_MD, PADDING_SM))
        ctk.CTkLabel(
            header, text="Reportes", font=FONT_HEADING, text_color=TEXT_PRIMARY,
        ).pack(side="left")
        ctk.CTkButton(
            header,
            text="Exportar CSV",
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            command=self._export,
        ).pack(side="right")
        ctk.CTkButton(header, text="Actualizar", width=100, command=self.refresh).pack(
            side="right", padx=PADDING_SM,
        )

        self._body = ctk.CTkScrollableFrame(self, fg_color=CONTENT_BG)
        self._body.pack(fill="both", expand=True, padx=PADDING_MD, pady=(0, PADDING_MD))

    def refresh(self) -> None:
        user = self._session.current_profile
        if user is None:
            return
        run_in_background(
            self,
            lambda: self._service.load_orders(user),
            self._on_loaded,
            name="reports-load",
        )

    def _on_loaded(self, result: ServiceResult[list[WorkOrder]]) -> None:
        if not result.success:
            messagebox.showerror("Error", result.error or "")
            return
        self._orders = result.data or []
        self._render()

    def _render(self) -> None:
        for child in self._body.winfo_children():
            child.destroy()

        stats: OrderStatistics = self._service.compute_statistics(self._orders)
        ctk.CTkLabel(
            self._body, text=f"Total de órdenes: {stats.total}",
            font=FONT_LABEL, text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(0, PADDING_SM))

        for field, label, color in _STAT_ROWS:
            value: int = getattr(stats, field)
            row = ctk.CTkFrame(self._body, fg_color=CONTENT_CARD_BG, corner_radius=CORNER_RADIUS)
            row.pack(fill="x", pady=(0, 4))
            ctk.CTkLabel(row, text=label, font=FONT_BODY, width=200, anchor="w").pack(
                side="left", padx=PADDING_SM,
            )
            bar = ctk.CTkProgressBar(row, progress_color=color)
            bar.set(stats.share(value))
            bar.pack(side="left", fill="x", expand=True, padx=PADDING_SM)
            ctk.CTkLabel(
                row, text=f"{value} ({stats.share(value):.0%})",
                font=FONT_BODY, text_color=TEXT_SECONDARY, width=90,
            ).pack(side="right", padx=PADDING_SM)

        ctk.CTkLabel(
            self._body, text="Por tipo de trabajo", font=FONT_LABEL,
            text_color=TEXT_PRIMARY, anchor="w",
        ).pack(fill="x", pady=(PADDING_MD, PADDING_SM))
        for category, count in self._service.count_by_category(self._orders).items():
            ctk.CTkLabel(
                self._body,
                text=f"{CATEGORY_LABELS[category]}: {count}",
                font=FONT_BODY,
                anchor="w",
            ).pack(fill="x")

    def _export(self) -> None:
        try:
            path = self._service.export_report(self._orders)
        except ExportError as exc:
            messagebox.showerror("Error", str(exc))
            return
        messagebox.showinfo("Reporte generado", f"Archivo guardado en:\n{path.resolve()}")
