"""
Home dashboard tests.

Tests cover:
  - Greeting by hour of day
  - Summary counts over the recent orders
  - Loading and live updates through the work-order service
"""
import pytest

from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services.home import HOSPITAL_INFO, HomeService, greeting_for, summarize_recent
from ot_tracker.services.work_orders import MSG_LOAD_FAILED, WorkOrderService
from tests.conftest import failing

ORDERS = "ordenes_trabajo"


@pytest.fixture()
def service(work_order_repo, blobs, logger):
    work_orders = WorkOrderService(repo=work_order_repo, blobs=blobs, logger=logger)
    return HomeService(work_orders=work_orders, logger=logger, recent_limit=3)


@pytest.fixture(autouse=True)
def _seed(store):
    for day, (owner, status) in enumerate(
        [("staff-1", "open"), ("other", "in_progress"), ("staff-1", "resolved"),
         ("staff-1", "pending"), ("other", "open")],
        start=1,
    ):
        store.seed(ORDERS, {
            "id": f"o{day}",
            "title": f"Orden {day}",
            "created_by": owner,
            "status": status,
            "created_at": f"2024-01-0{day}T00:00:00+00:00",
        })


class TestGreeting:
    @pytest.mark.parametrize("hour, expected", [
        (0, "Buenos días"),
        (11, "Buenos días"),
        (12, "Buenas tardes"),
        (17, "Buenas tardes"),
        (18, "Buenas noches"),
        (23, "Buenas noches"),
    ])
    def test_greeting_for(self, hour, expected):
        assert greeting_for(hour) == expected

    def test_contact_details_present(self):
        assert set(HOSPITAL_INFO) == {"name", "address", "phone", "email"}


class TestSummary:
    def test_counts_use_exact_statuses(self):
        orders = [
            WorkOrder(id="a", status="open"),
            WorkOrder(id="b", status="in_progress"),
            WorkOrder(id="c", status="pending"),
            WorkOrder(id="d", status="resolved"),
            WorkOrder(id="e", status="closed"),
        ]

        summary = summarize_recent(orders)

        assert (summary.total, summary.open, summary.in_progress, summary.resolved) == (5, 1, 1, 1)
        assert [o.id for o in summary.recent] == ["a", "b", "c", "d", "e"]

    def test_empty(self):
        summary = summarize_recent([])
        assert summary.total == 0 and summary.recent == []


class TestLoad:
    def test_staff_summary_covers_own_recent_orders(self, service, staff):
        result = service.load_summary(staff)

        assert result.success
        assert [o.id for o in result.data.recent] == ["o4", "o3", "o1"]
        assert (result.data.open, result.data.resolved) == (1, 1)

    def test_admin_summary_limited_to_recent(self, service, admin):
        result = service.load_summary(admin)
        assert [o.id for o in result.data.recent] == ["o5", "o4", "o3"]

    def test_store_failure(self, service, store, admin):
        store.fail_on["query"] = failing()
        result = service.load_summary(admin)
        assert (result.success, result.status_code, result.error) == (False, 500, MSG_LOAD_FAILED)


class TestLive:
    def test_summary_pushed_on_change(self, service, store, admin):
        pushes = []
        result = service.subscribe_summary(admin, pushes.append)

        store.update(ORDERS, "o5", {"status": "resolved"})

        assert pushes[0].open == 1
        assert pushes[-1].open == 0
        assert pushes[-1].resolved == 2
        result.data.release()
        assert store.query_subscriber_count(ORDERS) == 0

    def test_subscription_failure(self, service, store, staff):
        store.fail_on["subscribe_query"] = failing()
        assert service.subscribe_summary(staff, lambda _summary: None).status_code == 500
