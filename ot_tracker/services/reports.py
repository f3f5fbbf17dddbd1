"""
Reports Service.

Status statistics, per-category counts and the CSV export used by the
administrator's report screen.

Statistics buckets::

    resolved     <- resolved, closed
    open         <- open, pending
    in_progress  <- in_progress
    other        <- everything else (cancelled, unknown labels)

``other`` is derived from the total, so the four buckets always add up.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import OrdenCategory, OrdenStatus
from ot_tracker.models.service_models import OrderStatistics, ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.repositories.work_order_repository import WorkOrderRepository
from ot_tracker.services.base_service import BaseService
from ot_tracker.utils.string_helpers import collapse_whitespace
from ot_tracker.utils.timestamps import utc_now

CSV_HEADER: str = (
    "ID,Fecha Creacion,Titulo,Categoria,Actividad,Estado,"
    "Creado Por,Ubicacion,Fecha Resolucion"
)
MSG_EXPORT_FAILED: str = "No se pudo generar el archivo"
MSG_LOAD_FAILED: str = "No se pudieron cargar los datos"
MSG_ADMIN_ONLY: str = "Solo los administradores pueden ver los reportes."

_RESOLVED: frozenset[str] = frozenset({OrdenStatus.RESOLVED, OrdenStatus.CLOSED})
_OPEN: frozenset[str] = frozenset({OrdenStatus.OPEN, OrdenStatus.PENDING})
_IN_PROGRESS: frozenset[str] = frozenset({OrdenStatus.IN_PROGRESS})


class ExportError(Exception):
    """The report file could not be written."""


def compute_statistics(orders: list[WorkOrder]) -> OrderStatistics:
    total = len(orders)
    resolved = sum(1 for order in orders if order.status in _RESOLVED)
    open_count = sum(1 for order in orders if order.status in _OPEN)
    in_progress = sum(1 for order in orders if order.status in _IN_PROGRESS)
    return OrderStatistics(
        total=total,
        resolved=resolved,
        open=open_count,
        in_progress=in_progress,
        other=total - (resolved + open_count + in_progress),
    )


def count_by_category(orders: list[WorkOrder]) -> dict[OrdenCategory, int]:
    """Orders per category in taxonomy order; categories with no orders are omitted."""
    counts: dict[OrdenCategory, int] = {}
    for category in OrdenCategory:
        count = sum(1 for order in orders if order.category == category)
        if count:
            counts[category] = count
    return counts


def _format_date(value: Optional[datetime], date_format: str) -> str:
    return value.strftime(date_format) if value is not None else ""


def generate_csv(orders: list[WorkOrder], date_format: str = "%d-%m-%Y") -> str:
    """Render *orders* as CSV text, header first, one ``\\n``-terminated row each.

    Every field has commas and line breaks replaced by single spaces, so
    each row splits into exactly nine fields on ``","``.
    """
    lines = [CSV_HEADER]
    for order in orders:
        row = [
            order.id,
            _format_date(order.created_at, date_format),
            order.title,
            order.category,
            order.activity,
            order.status,
            order.created_by_name,
            order.location,
            _format_date(order.resolved_at, date_format),
        ]
        lines.append(",".join(collapse_whitespace(field) for field in row))
    return "\n".join(lines) + "\n"


def report_filename(today: Optional[date] = None) -> str:
    """``reporte_ot_<YYYY-MM-DD>.csv`` for *today* (UTC date by default)."""
    today = today or utc_now().date()
    return f"reporte_ot_{today.isoformat()}.csv"


class ReportService(BaseService):
    """Service layer for the report screen."""

    def __init__(
        self,
        repo: WorkOrderRepository,
        logger: StructuredLogger,
        export_dir: str = ".",
        date_format: str = "%d-%m-%Y",
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._export_dir = Path(export_dir)
        self._date_format = date_format

    def load_orders(self, current_user: UserProfile) -> ServiceResult[list[WorkOrder]]:
        """Every work order, newest first (administrators only)."""
        if not current_user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)
        try:
            return ServiceResult(success=True, data=self._repo.list_orders())
        except Exception as exc:
            self._logger.error("Failed to load report data: %s", exc)
            return ServiceResult(success=False, error=MSG_LOAD_FAILED, status_code=500)

    def compute_statistics(self, orders: list[WorkOrder]) -> OrderStatistics:
        return compute_statistics(orders)

    def count_by_category(self, orders: list[WorkOrder]) -> dict[OrdenCategory, int]:
        return count_by_category(orders)

    def generate_csv(self, orders: list[WorkOrder]) -> str:
        return generate_csv(orders, self._date_format)

    def export_report(
        self,
        orders: list[WorkOrder],
        directory: Optional[Path] = None,
    ) -> Path:
        """Write the CSV for *orders* to ``<directory>/reporte_ot_<date>.csv``.

        Raises:
            ExportError: If the file cannot be written.
        """
        target_dir = Path(directory) if directory is not None else self._export_dir
        target = target_dir / report_filename()
        content = self.generate_csv(orders)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8", newline="")
        except OSError as exc:
            self._logger.error("Report export to %s failed: %s", target, exc)
            raise ExportError(MSG_EXPORT_FAILED) from exc

        self._logger.info(
            "Report exported: %s (%d orders)", target, len(orders),
            extra={"event": "EXPORT_REPORT"},
        )
        return target
