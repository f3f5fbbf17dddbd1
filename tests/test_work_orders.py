"""
Work-order service tests.

Tests cover:
  - Creation (validation, defaults, photo upload)
  - Visibility (own orders vs. all orders) and status filter
  - Live order lists
  - Search
  - Admin-only status changes and deletion
"""
import logging
import re

import pytest

from ot_tracker.models.work_order import WorkOrder, WorkOrderInput
from ot_tracker.services.work_orders import (
    MSG_ADMIN_ONLY,
    MSG_INCOMPLETE_FIELDS,
    MSG_LOAD_FAILED,
    MSG_NOT_FOUND,
    WorkOrderService,
    search_work_orders,
)
from ot_tracker.stores.supabase_blobs import generate_evidence_path
from tests.conftest import failing

ORDERS = "ordenes_trabajo"


@pytest.fixture()
def service(work_order_repo, blobs, logger):
    return WorkOrderService(repo=work_order_repo, blobs=blobs, logger=logger)


@pytest.fixture()
def form():
    return WorkOrderInput(
        title="  Fuga de agua ",
        description="Baño del segundo piso",
        category="fontaneria",
        activity="reparacion",
        location="Piso 2",
    )


# ═════════════════════════════════════════════════════════════════════════
# CREATE
# ═════════════════════════════════════════════════════════════════════════

class TestCreate:
    def test_create_sets_defaults(self, service, store, staff, form):
        result = service.create_work_order(staff, form)

        assert result.success
        assert result.status_code == 201
        stored = store.collections[ORDERS][result.data.id]
        assert stored["title"] == "Fuga de agua"
        assert stored["status"] == "open"
        assert stored["priority"] == "medium"
        assert stored["created_by"] == "staff-1"
        assert stored["created_by_name"] == "Pedro Pérez"
        assert stored["image_url"] is None
        assert stored["created_at"] == stored["updated_at"]

    @pytest.mark.parametrize("missing", ["title", "description", "location"])
    def test_blank_required_field_rejected(self, service, store, staff, missing):
        fields = {"title": "T", "description": "D", "location": "L", missing: "   "}

        result = service.create_work_order(staff, WorkOrderInput(**fields))

        assert not result.success
        assert result.error == MSG_INCOMPLETE_FIELDS
        assert store.writes() == []

    def test_unprovisioned_user_cannot_create(self, service, form):
        result = service.create_work_order(None, form)
        assert result.status_code == 400

    def test_unknown_category_rejected_by_form(self):
        with pytest.raises(ValueError):
            WorkOrderInput(title="T", description="D", location="L", category="jardineria")

    def test_photo_uploaded_before_insert(self, service, store, blobs, staff, form):
        result = service.create_work_order(staff, form, image=b"\xff\xd8jpeg")

        path, payload, content_type = blobs.uploads[0]
        assert re.fullmatch(r"evidence/\d+_[a-z0-9]{7}\.jpg", path)
        assert payload == b"\xff\xd8jpeg"
        assert content_type == "image/jpeg"
        assert result.data.image_url == f"https://cdn.example.test/{path}"

    def test_upload_failure_aborts_creation(self, service, store, blobs, staff, form):
        blobs.fail = True

        result = service.create_work_order(staff, form, image=b"jpeg")

        assert not result.success
        assert result.error == "Error al subir la imagen"
        assert store.writes() == []

    def test_store_failure_reported(self, service, store, staff, form):
        store.fail_on["insert"] = failing()

        result = service.create_work_order(staff, form)

        assert not result.success
        assert result.status_code == 500

    def test_creation_audit_logged(self, service, staff, form, caplog):
        with caplog.at_level(logging.INFO):
            service.create_work_order(staff, form)

        assert any("CREATE_WORK_ORDER" in r.getMessage() for r in caplog.records)


class TestEvidencePath:
    def test_format(self):
        assert re.fullmatch(r"evidence/1700000000000_[a-z0-9]{7}\.jpg", generate_evidence_path(now_ms=1_700_000_000_000))

    def test_paths_are_unique(self):
        assert generate_evidence_path(now_ms=1) != generate_evidence_path(now_ms=1)


# ═════════════════════════════════════════════════════════════════════════
# LIST / SEARCH
# ═════════════════════════════════════════════════════════════════════════

class TestList:
    @pytest.fixture(autouse=True)
    def _seed(self, store):
        store.seed(ORDERS, {"id": "o1", "created_by": "staff-1", "status": "open", "created_at": "2024-01-01T00:00:00+00:00"})
        store.seed(ORDERS, {"id": "o2", "created_by": "other", "status": "open", "created_at": "2024-01-02T00:00:00+00:00"})
        store.seed(ORDERS, {"id": "o3", "created_by": "staff-1", "status": "resolved", "created_at": "2024-01-03T00:00:00+00:00"})

    def test_staff_sees_only_own_orders(self, service, staff):
        result = service.list_work_orders(staff)
        assert [o.id for o in result.data] == ["o3", "o1"]

    def test_admin_sees_all_newest_first(self, service, admin):
        result = service.list_work_orders(admin)
        assert [o.id for o in result.data] == ["o3", "o2", "o1"]

    def test_status_filter(self, service, admin):
        result = service.list_work_orders(admin, status="open")
        assert [o.id for o in result.data] == ["o2", "o1"]

    def test_limit(self, service, admin):
        assert len(service.list_work_orders(admin, limit=1).data) == 1

    def test_store_failure(self, service, store, admin):
        store.fail_on["query"] = failing()
        assert not service.list_work_orders(admin).success


class TestLiveList:
    @pytest.fixture(autouse=True)
    def _seed(self, store):
        store.seed(ORDERS, {"id": "o1", "created_by": "staff-1", "status": "open", "created_at": "2024-01-01T00:00:00+00:00"})
        store.seed(ORDERS, {"id": "o2", "created_by": "other", "status": "open", "created_at": "2024-01-02T00:00:00+00:00"})

    def test_staff_receives_own_orders_and_later_changes(self, service, store, staff, form):
        pushes = []
        result = service.subscribe_work_orders(staff, lambda orders: pushes.append([o.id for o in orders]))
        assert result.success

        created = service.create_work_order(staff, form).data
        store.update(ORDERS, "o2", {"title": "ajena"})

        assert pushes[0] == ["o1"]
        assert pushes[1] == [created.id, "o1"]
        assert pushes[-1] == [created.id, "o1"]
        result.data.release()

    def test_admin_status_filter(self, service, store, admin):
        pushes = []
        result = service.subscribe_work_orders(admin, pushes.append, status="resolved")

        assert pushes == [[]]
        store.update(ORDERS, "o1", {"status": "resolved"})
        assert [o.id for o in pushes[-1]] == ["o1"]
        result.data.release()

    def test_released_list_stops_pushing(self, service, store, admin):
        pushes = []
        result = service.subscribe_work_orders(admin, pushes.append)
        result.data.release()

        store.update(ORDERS, "o1", {"status": "resolved"})

        assert len(pushes) == 1
        assert store.query_subscriber_count(ORDERS) == 0

    def test_malformed_row_skipped(self, service, store, admin):
        pushes = []
        service.subscribe_work_orders(admin, pushes.append)

        store.put(ORDERS, "o3", {"created_at": {"_seconds": 1}})

        assert [o.id for o in pushes[-1]] == ["o2", "o1"]

    def test_store_failure(self, service, store, admin):
        store.fail_on["subscribe_query"] = failing()
        result = service.subscribe_work_orders(admin, lambda _orders: None)
        assert result.status_code == 500
        assert result.error == MSG_LOAD_FAILED


class TestSearch:
    ORDERS_LIST = [
        WorkOrder(id="1", title="Fuga de agua", description="Baño"),
        WorkOrder(id="2", title="Luminaria", description="Cambio de AGUA destilada"),
        WorkOrder(id="3", title="Pintura", description="Muro"),
    ]

    def test_case_insensitive_title_and_description(self):
        assert [o.id for o in search_work_orders(self.ORDERS_LIST, "agua")] == ["1", "2"]

    def test_blank_query_returns_everything(self):
        assert search_work_orders(self.ORDERS_LIST, "  ") == self.ORDERS_LIST

    def test_no_match(self):
        assert search_work_orders(self.ORDERS_LIST, "ascensor") == []


# ═════════════════════════════════════════════════════════════════════════
# ADMIN MUTATIONS
# ═════════════════════════════════════════════════════════════════════════

class TestUpdateStatus:
    @pytest.fixture(autouse=True)
    def _seed(self, store):
        store.seed(ORDERS, {"id": "o1", "status": "open", "created_by": "staff-1"})

    def test_admin_can_set_any_status(self, service, store, admin):
        result = service.update_status(admin, "o1", "cancelled")

        assert result.success
        assert store.collections[ORDERS]["o1"]["status"] == "cancelled"
        assert "resolved_at" not in store.collections[ORDERS]["o1"]

    def test_resolving_stamps_resolved_at(self, service, store, admin):
        result = service.update_status(admin, "o1", "resolved")

        assert result.data.resolved_at is not None
        assert store.collections[ORDERS]["o1"]["resolved_at"] is not None

    def test_staff_rejected(self, service, store, staff):
        result = service.update_status(staff, "o1", "resolved")

        assert result.status_code == 403
        assert result.error == MSG_ADMIN_ONLY
        assert store.writes() == []

    def test_invalid_status(self, service, admin):
        assert service.update_status(admin, "o1", "done").status_code == 400

    def test_missing_order(self, service, admin):
        result = service.update_status(admin, "nope", "resolved")
        assert result.status_code == 404
        assert result.error == MSG_NOT_FOUND


class TestDelete:
    def test_admin_deletes(self, service, store, admin):
        store.seed(ORDERS, {"id": "o1"})

        result = service.delete_work_order(admin, "o1")

        assert result.success
        assert "o1" not in store.collections[ORDERS]

    def test_staff_rejected(self, service, store, staff):
        store.seed(ORDERS, {"id": "o1"})

        assert service.delete_work_order(staff, "o1").status_code == 403
        assert "o1" in store.collections[ORDERS]

    def test_store_failure(self, service, store, admin):
        store.fail_on["delete"] = failing()
        assert service.delete_work_order(admin, "o1").status_code == 500
