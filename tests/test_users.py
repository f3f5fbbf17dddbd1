"""
User administration tests.

Tests cover:
  - Admin-only listing and search
  - Live user list
  - Editing another profile (required fields, role validation)
  - Deleting a profile (orders are orphaned, not removed)
  - Self-service profile edit
"""
import pytest

from ot_tracker.models.user import UserProfile
from ot_tracker.services.users import (
    MSG_ADMIN_ONLY,
    MSG_LOAD_FAILED,
    MSG_REQUIRED_FIELDS,
    MSG_SAVE_FAILED,
    UserService,
    search_users,
)
from tests.conftest import failing

USERS = "users"


@pytest.fixture()
def service(user_repo, logger):
    return UserService(repo=user_repo, logger=logger)


@pytest.fixture(autouse=True)
def _seed(store):
    store.seed(USERS, {"id": "u1", "name": "Carla Soto", "email": "carla@hospital.cl", "sector": "Pabellón",
                       "role": "patient", "created_at": "2024-01-01T00:00:00+00:00"})
    store.seed(USERS, {"id": "u2", "name": "Luis Mena", "email": "luis@hospital.cl", "sector": None,
                       "role": "admin", "created_at": "2024-02-01T00:00:00+00:00"})


class TestList:
    def test_admin_lists_newest_first(self, service, admin):
        result = service.list_users(admin)
        assert [u.id for u in result.data] == ["u2", "u1"]

    def test_staff_rejected(self, service, staff):
        result = service.list_users(staff)
        assert result.status_code == 403
        assert result.error == MSG_ADMIN_ONLY

    def test_store_failure(self, service, store, admin):
        store.fail_on["query"] = failing()
        assert service.list_users(admin).status_code == 500


class TestLiveList:
    def test_admin_receives_list_and_changes(self, service, store, admin):
        pushes = []
        result = service.subscribe_users(admin, lambda users: pushes.append([u.id for u in users]))

        store.put(USERS, "u3", {"name": "Nora", "email": "nora@hospital.cl", "created_at": "2024-03-01T00:00:00+00:00"})

        assert pushes[0] == ["u2", "u1"]
        assert pushes[-1] == ["u3", "u2", "u1"]
        result.data.release()
        assert store.query_subscriber_count(USERS) == 0

    def test_staff_rejected(self, service, store, staff):
        result = service.subscribe_users(staff, lambda _users: None)

        assert result.status_code == 403
        assert result.error == MSG_ADMIN_ONLY
        assert store.query_subscriber_count(USERS) == 0

    def test_store_failure(self, service, store, admin):
        store.fail_on["subscribe_query"] = failing()
        result = service.subscribe_users(admin, lambda _users: None)
        assert (result.status_code, result.error) == (500, MSG_LOAD_FAILED)


class TestSearch:
    USERS_LIST = [
        UserProfile(id="1", name="Carla Soto", email="carla@hospital.cl", sector="Pabellón"),
        UserProfile(id="2", name="Luis Mena", email="luis@hospital.cl"),
    ]

    @pytest.mark.parametrize("query, expected", [
        ("carla", ["1"]),
        ("HOSPITAL", ["1", "2"]),
        ("pabell", ["1"]),
        ("", ["1", "2"]),
        ("farmacia", []),
    ])
    def test_search_over_name_email_sector(self, query, expected):
        assert [u.id for u in search_users(self.USERS_LIST, query)] == expected


class TestUpdateUser:
    def test_admin_updates_profile(self, service, store, admin):
        result = service.update_user(admin, "u1", " Carla S. ", "Farmacia", "admin")

        assert result.success
        stored = store.collections[USERS]["u1"]
        assert stored["name"] == "Carla S."
        assert stored["sector"] == "Farmacia"
        assert stored["role"] == "admin"
        assert isinstance(stored["updated_at"], str)

    @pytest.mark.parametrize("name, sector", [("", "Farmacia"), ("Carla", "  ")])
    def test_name_and_sector_required(self, service, store, admin, name, sector):
        result = service.update_user(admin, "u1", name, sector, "patient")

        assert result.error == MSG_REQUIRED_FIELDS
        assert store.writes() == []

    def test_invalid_role(self, service, admin):
        assert service.update_user(admin, "u1", "Carla", "Farmacia", "root").status_code == 400

    def test_staff_rejected(self, service, staff):
        assert service.update_user(staff, "u1", "Carla", "Farmacia", "admin").status_code == 403

    def test_store_failure(self, service, store, admin):
        store.fail_on["update"] = failing()

        result = service.update_user(admin, "u1", "Carla", "Farmacia", "patient")

        assert result.error == MSG_SAVE_FAILED


class TestDeleteUser:
    def test_orders_are_orphaned(self, service, store, admin):
        store.seed("ordenes_trabajo", {"id": "o1", "created_by": "u1"})

        result = service.delete_user(admin, "u1")

        assert result.success
        assert "u1" not in store.collections[USERS]
        assert store.collections["ordenes_trabajo"]["o1"]["created_by"] == "u1"

    def test_staff_rejected(self, service, store, staff):
        assert service.delete_user(staff, "u1").status_code == 403
        assert "u1" in store.collections[USERS]


class TestOwnProfile:
    def test_updates_name_and_sector_only(self, service, store):
        me = UserProfile(id="u1", name="Carla Soto", email="carla@hospital.cl", role="patient")

        result = service.update_own_profile(me, "Carla", "Urgencia")

        assert result.success
        stored = store.collections[USERS]["u1"]
        assert (stored["name"], stored["sector"], stored["role"]) == ("Carla", "Urgencia", "patient")

    def test_requires_profile(self, service):
        assert service.update_own_profile(None, "Carla", "Urgencia").status_code == 401

    def test_required_fields(self, service):
        me = UserProfile(id="u1")
        assert service.update_own_profile(me, "Carla", "").error == MSG_REQUIRED_FIELDS
