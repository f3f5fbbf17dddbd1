"""
User Management Service.

Administrative profile operations: listing, search, edit and deletion,
plus the self-service profile edit.

Deleting a profile removes only the profile document.  Work orders that
reference it are left in place (orphaned).
"""

from __future__ import annotations

from typing import Callable, Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import UserRole
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.services.base_service import BaseService
from ot_tracker.stores.base import Subscription
from ot_tracker.utils.audit import log_audit_event
from ot_tracker.utils.timestamps import utc_now

MSG_REQUIRED_FIELDS: str = "Nombre y Sector son obligatorios"
MSG_SAVE_FAILED: str = "No se pudo guardar los cambios"
MSG_DELETE_FAILED: str = "No se pudo eliminar el usuario"
MSG_LOAD_FAILED: str = "No se pudieron cargar los usuarios"
MSG_ADMIN_ONLY: str = "Solo los administradores pueden gestionar usuarios."


def search_users(users: list[UserProfile], query: str) -> list[UserProfile]:
    """Case-insensitive substring match over name, email and sector."""
    needle = query.strip().lower()
    if not needle:
        return users
    return [
        user
        for user in users
        if needle in user.name.lower()
        or needle in user.email.lower()
        or needle in (user.sector or "").lower()
    ]


class UserService(BaseService):
    """Service layer for profile management operations."""

    def __init__(
        self,
        repo: UserRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo

    def list_users(self, current_user: UserProfile) -> ServiceResult[list[UserProfile]]:
        """All profiles, newest first (administrators only)."""
        if not current_user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)
        try:
            return ServiceResult(success=True, data=self._repo.get_all())
        except Exception as exc:
            self._logger.error("Failed to fetch users: %s", exc)
            return ServiceResult(success=False, error=MSG_LOAD_FAILED, status_code=500)

    def subscribe_users(
        self,
        current_user: UserProfile,
        on_change: Callable[[list[UserProfile]], None],
    ) -> ServiceResult[Subscription]:
        """Live :meth:`list_users` (administrators only)."""
        if not current_user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)
        try:
            subscription = self._repo.subscribe_all(on_change)
        except Exception as exc:
            self._logger.error("Failed to subscribe to users: %s", exc)
            return ServiceResult(success=False, error=MSG_LOAD_FAILED, status_code=500)
        return ServiceResult(success=True, data=subscription)

    def search_users(self, users: list[UserProfile], query: str) -> list[UserProfile]:
        return search_users(users, query)

    def update_user(
        self,
        current_user: UserProfile,
        user_id: str,
        name: str,
        sector: str,
        role: str,
    ) -> ServiceResult[dict[str, object]]:
        """Edit another user's name, sector and role.

        Args:
            current_user: The administrator performing the change.
            user_id: Key of the profile being edited.
            name: New display name (required).
            sector: New sector (required).
            role: ``"admin"`` or ``"patient"``.
        """
        # --- 0. RBAC ---
        if not current_user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)

        name, sector = name.strip(), sector.strip()
        if not name or not sector:
            return ServiceResult(success=False, error=MSG_REQUIRED_FIELDS, status_code=400)

        try:
            validated_role = UserRole(role)
        except ValueError:
            return ServiceResult(
                success=False,
                error=f"Rol no válido: '{role}'. "
                      f"Debe ser uno de: {', '.join(r.value for r in UserRole)}.",
                status_code=400,
            )

        fields: dict[str, object] = {
            "name": name,
            "sector": sector,
            "role": str(validated_role),
            "updated_at": utc_now(),
        }
        try:
            self._repo.update_fields(user_id, fields)
        except Exception as exc:
            self._logger.error("Failed to update user %s: %s", user_id, exc)
            return ServiceResult(success=False, error=MSG_SAVE_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="UPDATE_USER",
            entity_type="UserProfile",
            entity_id=user_id,
            user_id=current_user.id,
            details={"name": name, "sector": sector, "role": str(validated_role)},
        )
        return ServiceResult(success=True, data=fields)

    def delete_user(self, current_user: UserProfile, user_id: str) -> ServiceResult[str]:
        """Delete a profile document (administrators only)."""
        if not current_user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)

        try:
            self._repo.delete(user_id)
        except Exception as exc:
            self._logger.error("Failed to delete user %s: %s", user_id, exc)
            return ServiceResult(success=False, error=MSG_DELETE_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="DELETE_USER",
            entity_type="UserProfile",
            entity_id=user_id,
            user_id=current_user.id,
        )
        return ServiceResult(success=True, data=user_id)

    def update_own_profile(
        self,
        current_user: Optional[UserProfile],
        name: str,
        sector: str,
    ) -> ServiceResult[dict[str, object]]:
        """Edit the signed-in user's own name and sector.

        The role is never touched here.  The session profile refreshes
        through the profile subscription, not from the return value.
        """
        if current_user is None:
            return ServiceResult(success=False, error=MSG_SAVE_FAILED, status_code=401)

        name, sector = name.strip(), sector.strip()
        if not name or not sector:
            return ServiceResult(success=False, error=MSG_REQUIRED_FIELDS, status_code=400)

        fields: dict[str, object] = {"name": name, "sector": sector, "updated_at": utc_now()}
        try:
            self._repo.update_fields(current_user.id, fields)
        except Exception as exc:
            self._logger.error("Failed to update own profile %s: %s", current_user.id, exc)
            return ServiceResult(success=False, error=MSG_SAVE_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="UPDATE_OWN_PROFILE",
            entity_type="UserProfile",
            entity_id=current_user.id,
            user_id=current_user.id,
        )
        return ServiceResult(success=True, data=fields)
