"""
Reports tests.

Tests cover:
  - Status statistics (including unknown labels)
  - Per-category counts
  - CSV text (header, field cleaning, dates)
  - File export and export failures
  - Admin-only data loading
"""
from datetime import date, datetime, timezone

import pytest

from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services.reports import (
    CSV_HEADER,
    MSG_EXPORT_FAILED,
    ExportError,
    ReportService,
    compute_statistics,
    count_by_category,
    generate_csv,
    report_filename,
)
from tests.conftest import failing


def _order(order_id="ot-1", **fields):
    base = {
        "id": order_id,
        "title": "Cambiar luminaria",
        "category": "electrica",
        "activity": "reemplazo",
        "status": "open",
        "created_by": "staff-1",
        "created_by_name": "Pedro Pérez",
        "location": "Pasillo 2",
        "created_at": datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc),
    }
    base.update(fields)
    return WorkOrder(**base)


@pytest.fixture()
def service(work_order_repo, logger, tmp_path):
    return ReportService(repo=work_order_repo, logger=logger, export_dir=str(tmp_path))


# ═════════════════════════════════════════════════════════════════════════
# STATISTICS
# ═════════════════════════════════════════════════════════════════════════

class TestStatistics:
    def test_buckets(self):
        orders = [
            _order("1", status="resolved"),
            _order("2", status="closed"),
            _order("3", status="open"),
            _order("4", status="pending"),
            _order("5", status="in_progress"),
            _order("6", status="cancelled"),
        ]

        stats = compute_statistics(orders)

        assert (stats.total, stats.resolved, stats.open, stats.in_progress, stats.other) == (6, 2, 2, 1, 1)

    @pytest.mark.parametrize("statuses", [
        [],
        ["open"],
        ["on_hold", "waiting_parts", "resolved"],
        ["", "OPEN", "in_progress", "closed", "archived"],
    ])
    def test_buckets_always_sum_to_total(self, statuses):
        orders = [_order(str(i), status=s) for i, s in enumerate(statuses)]

        stats = compute_statistics(orders)

        assert stats.resolved + stats.open + stats.in_progress + stats.other == stats.total

    def test_unknown_status_counted_as_other(self):
        stats = compute_statistics([_order(status="waiting_parts")])
        assert stats.other == 1

    def test_share_of_empty_set_is_zero(self):
        stats = compute_statistics([])
        assert stats.share(stats.open) == 0.0

    def test_share(self):
        stats = compute_statistics([_order("1", status="open"), _order("2", status="resolved")])
        assert stats.share(stats.open) == 0.5


class TestCategoryCounts:
    def test_taxonomy_order_and_zero_omitted(self):
        orders = [
            _order("1", category="pintura"),
            _order("2", category="climatizacion"),
            _order("3", category="pintura"),
            _order("4", category="retired_category"),
        ]

        counts = count_by_category(orders)

        assert list(counts.items()) == [("climatizacion", 1), ("pintura", 2)]


# ═════════════════════════════════════════════════════════════════════════
# CSV
# ═════════════════════════════════════════════════════════════════════════

class TestCsv:
    def test_header_and_row(self):
        csv_text = generate_csv([_order(resolved_at=datetime(2024, 3, 9, tzinfo=timezone.utc))])

        lines = csv_text.split("\n")
        assert lines[0] == CSV_HEADER
        assert lines[1] == (
            "ot-1,05-03-2024,Cambiar luminaria,electrica,reemplazo,open,"
            "Pedro Pérez,Pasillo 2,09-03-2024"
        )
        assert csv_text.endswith("\n")

    def test_comma_in_title_is_stripped(self):
        csv_text = generate_csv([_order(title="Fix A/C, now")])

        fields = csv_text.splitlines()[1].split(",")
        assert len(fields) == 9
        assert fields[2] == "Fix A/C now"

    def test_comma_and_newline_never_break_the_row(self):
        order = _order(
            title="Fuga,\nsala 3",
            location="Box 4,\r\nUrgencia",
            created_by_name="Díaz, Ana",
        )

        rows = generate_csv([order]).splitlines()

        assert len(rows) == 2
        fields = rows[1].split(",")
        assert len(fields) == 9
        assert fields[2] == "Fuga sala 3"
        assert fields[6] == "Díaz Ana"
        assert fields[7] == "Box 4 Urgencia"

    def test_absent_dates_and_activity_are_empty(self):
        row = generate_csv([_order(activity=None, resolved_at=None)]).splitlines()[1]

        fields = row.split(",")
        assert fields[4] == ""
        assert fields[8] == ""

    def test_empty_report_is_header_only(self):
        assert generate_csv([]) == CSV_HEADER + "\n"

    def test_report_filename(self):
        assert report_filename(date(2024, 11, 2)) == "reporte_ot_2024-11-02.csv"


class TestExport:
    def test_writes_utf8_file(self, service, tmp_path):
        path = service.export_report([_order(title="Reparación, urgente")])

        assert path.parent == tmp_path
        assert path.name.startswith("reporte_ot_") and path.suffix == ".csv"
        content = path.read_bytes().decode("utf-8")
        assert "Reparación urgente" in content
        assert "\r\n" not in content

    def test_explicit_directory(self, service, tmp_path):
        target = tmp_path / "exports" / "nov"

        path = service.export_report([], directory=target)

        assert path.parent == target
        assert path.read_text(encoding="utf-8") == CSV_HEADER + "\n"

    def test_write_failure_raises_export_error(self, service, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        orders = [_order()]

        with pytest.raises(ExportError) as exc_info:
            service.export_report(orders, directory=blocker)

        assert str(exc_info.value) == MSG_EXPORT_FAILED
        assert orders[0].title == "Cambiar luminaria"


class TestLoadOrders:
    def test_admin_sees_all_orders(self, service, store, admin):
        store.seed("ordenes_trabajo", {"id": "a", "created_by": "u1", "created_at": "2024-01-01T00:00:00+00:00"})
        store.seed("ordenes_trabajo", {"id": "b", "created_by": "u2", "created_at": "2024-02-01T00:00:00+00:00"})

        result = service.load_orders(admin)

        assert result.success
        assert [o.id for o in result.data] == ["b", "a"]

    def test_non_admin_rejected(self, service, staff):
        result = service.load_orders(staff)
        assert not result.success
        assert result.status_code == 403

    def test_store_failure(self, service, store, admin):
        store.fail_on["query"] = failing()

        result = service.load_orders(admin)

        assert not result.success
        assert result.status_code == 500
