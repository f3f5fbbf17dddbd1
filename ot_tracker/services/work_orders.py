"""
Work Order Service.

Creation, listing, search and administrative updates of work orders.

Visibility rule: standard users only ever see orders they created;
administrators see every order.  Status is a plain label: any status
may be set from any other.  Every failure is logged and returned as a
user-facing message; nothing is retried and the local view is never
updated optimistically.
"""

from __future__ import annotations

from typing import Callable, Optional

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import OrdenPriority, OrdenStatus
from ot_tracker.models.service_models import ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder, WorkOrderInput
from ot_tracker.repositories.work_order_repository import WorkOrderRepository
from ot_tracker.services.base_service import BaseService
from ot_tracker.stores.base import BlobStore, ImageUploadError, Subscription
from ot_tracker.stores.supabase_blobs import generate_evidence_path
from ot_tracker.utils.audit import log_audit_event
from ot_tracker.utils.timestamps import utc_now

MSG_INCOMPLETE_FIELDS: str = "Por favor completa todos los campos obligatorios (*)."
MSG_CREATE_FAILED: str = "No se pudo crear la orden. Inténtalo de nuevo."
MSG_LOAD_FAILED: str = "No se pudo cargar la lista de órdenes."
MSG_STATUS_FAILED: str = "No se pudo actualizar el estado de la orden."
MSG_DELETE_FAILED: str = "No se pudo eliminar la orden."
MSG_ADMIN_ONLY: str = "Solo los administradores pueden realizar esta acción."
MSG_NOT_FOUND: str = "La orden no existe."

_IMAGE_CONTENT_TYPE: str = "image/jpeg"


def search_work_orders(orders: list[WorkOrder], query: str) -> list[WorkOrder]:
    """Case-insensitive substring match over title and description.

    A blank query returns *orders* unchanged.
    """
    needle = query.strip().lower()
    if not needle:
        return orders
    return [
        order
        for order in orders
        if needle in order.title.lower() or needle in order.description.lower()
    ]


class WorkOrderService(BaseService):
    """Service layer for work-order operations."""

    def __init__(
        self,
        repo: WorkOrderRepository,
        blobs: BlobStore,
        logger: StructuredLogger,
        evidence_prefix: str = "evidence",
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._blobs = blobs
        self._evidence_prefix = evidence_prefix

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_work_order(
        self,
        user: Optional[UserProfile],
        form: WorkOrderInput,
        image: Optional[bytes] = None,
    ) -> ServiceResult[WorkOrder]:
        """Create a work order from validated form input.

        The photo, when given, is uploaded first; an upload failure aborts
        the creation.  New orders start ``open`` with ``medium`` priority.

        Args:
            user: The signed-in profile (``None`` when unprovisioned).
            form: Title, description, category, activity and location.
            image: Optional JPEG payload.
        """
        if user is None or not form.is_complete:
            return ServiceResult(
                success=False,
                error=MSG_INCOMPLETE_FIELDS,
                status_code=400,
            )

        image_url: Optional[str] = None
        if image is not None:
            path = generate_evidence_path(self._evidence_prefix)
            try:
                image_url = self._blobs.upload(path, image, _IMAGE_CONTENT_TYPE)
            except ImageUploadError as exc:
                self._logger.error("Evidence upload failed for %s: %s", user.id, exc)
                return ServiceResult(success=False, error=str(exc), status_code=502)

        now = utc_now()
        fields: dict[str, object] = {
            "title": form.title,
            "description": form.description,
            "category": str(form.category),
            "activity": str(form.activity),
            "priority": str(OrdenPriority.MEDIUM),
            "status": str(OrdenStatus.OPEN),
            "created_by": user.id,
            "created_by_name": user.name,
            "location": form.location,
            "image_url": image_url,
            "created_at": now,
            "updated_at": now,
        }

        try:
            order = self._repo.create(fields)
        except Exception as exc:
            self._logger.error("Failed to create work order for %s: %s", user.id, exc)
            return ServiceResult(success=False, error=MSG_CREATE_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="CREATE_WORK_ORDER",
            entity_type="WorkOrder",
            entity_id=order.id,
            user_id=user.id,
            details={"category": order.category, "location": order.location},
        )
        return ServiceResult(success=True, data=order, status_code=201)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_work_orders(
        self,
        user: UserProfile,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult[list[WorkOrder]]:
        """Orders visible to *user*, newest first, optionally one status only."""
        created_by = None if user.is_admin else user.id
        try:
            orders = self._repo.list_orders(
                created_by=created_by, status=status, limit=limit,
            )
        except Exception as exc:
            self._logger.error("Failed to list work orders for %s: %s", user.id, exc)
            return ServiceResult(success=False, error=MSG_LOAD_FAILED, status_code=500)
        return ServiceResult(success=True, data=orders)

    def subscribe_work_orders(
        self,
        user: UserProfile,
        on_change: Callable[[list[WorkOrder]], None],
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ServiceResult[Subscription]:
        """Live :meth:`list_work_orders`: *on_change* receives every new list.

        The caller owns the returned handle and releases it when the
        screen goes away.  *on_change* runs on the store's delivery thread.
        """
        created_by = None if user.is_admin else user.id
        try:
            subscription = self._repo.subscribe_orders(
                on_change, created_by=created_by, status=status, limit=limit,
            )
        except Exception as exc:
            self._logger.error("Failed to subscribe to work orders for %s: %s", user.id, exc)
            return ServiceResult(success=False, error=MSG_LOAD_FAILED, status_code=500)
        return ServiceResult(success=True, data=subscription)

    def search_work_orders(self, orders: list[WorkOrder], query: str) -> list[WorkOrder]:
        return search_work_orders(orders, query)

    # ------------------------------------------------------------------
    # Admin mutations
    # ------------------------------------------------------------------

    def update_status(
        self,
        user: UserProfile,
        order_id: str,
        status: str,
    ) -> ServiceResult[WorkOrder]:
        """Set the status label of an order (administrators only).

        Moving to ``resolved`` stamps ``resolved_at``; other statuses
        leave it as it is.
        """
        if not user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)

        try:
            new_status = OrdenStatus(status)
        except ValueError:
            return ServiceResult(
                success=False,
                error=f"Estado no válido: '{status}'.",
                status_code=400,
            )

        try:
            order = self._repo.get_by_id(order_id)
            if order is None:
                return ServiceResult(success=False, error=MSG_NOT_FOUND, status_code=404)

            now = utc_now()
            fields: dict[str, object] = {"status": str(new_status), "updated_at": now}
            if new_status == OrdenStatus.RESOLVED:
                fields["resolved_at"] = now
            self._repo.update_fields(order_id, fields)
        except Exception as exc:
            self._logger.error("Failed to update status of %s: %s", order_id, exc)
            return ServiceResult(success=False, error=MSG_STATUS_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="UPDATE_STATUS",
            entity_type="WorkOrder",
            entity_id=order_id,
            user_id=user.id,
            details={"old_status": order.status, "new_status": str(new_status)},
        )
        return ServiceResult(
            success=True,
            data=order.model_copy(update=fields),
        )

    def delete_work_order(self, user: UserProfile, order_id: str) -> ServiceResult[str]:
        """Delete an order (administrators only)."""
        if not user.is_admin:
            return ServiceResult(success=False, error=MSG_ADMIN_ONLY, status_code=403)

        try:
            self._repo.delete(order_id)
        except Exception as exc:
            self._logger.error("Failed to delete work order %s: %s", order_id, exc)
            return ServiceResult(success=False, error=MSG_DELETE_FAILED, status_code=500)

        log_audit_event(
            logger=self._logger,
            action="DELETE_WORK_ORDER",
            entity_type="WorkOrder",
            entity_id=order_id,
            user_id=user.id,
        )
        return ServiceResult(success=True, data=order_id)
