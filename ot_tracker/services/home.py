"""
Home Dashboard Service.

Greeting, the newest work orders visible to the signed-in user and a
small status summary over them.  The dashboard is live: it is rebuilt
from a query subscription every time the visible orders change.
"""

from __future__ import annotations

from typing import Callable, Final

from ot_tracker.logger import StructuredLogger
from ot_tracker.models.enums import OrdenStatus
from ot_tracker.models.service_models import HomeSummary, ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.services.base_service import BaseService
from ot_tracker.services.work_orders import WorkOrderService
from ot_tracker.stores.base import Subscription

HOSPITAL_INFO: Final[dict[str, str]] = {
    "name": "Hospital de Collipulli",
    "address": "Av. Manuel Rodriguez 1671, Collipulli, Chile",
    "phone": "+56 9 82573375",
    "email": "tic.kym24@gmail.com",
}


def greeting_for(hour: int) -> str:
    """Spanish greeting for a local hour of the day (0-23)."""
    if hour < 12:
        return "Buenos días"
    if hour < 18:
        return "Buenas tardes"
    return "Buenas noches"


def summarize_recent(orders: list[WorkOrder]) -> HomeSummary:
    return HomeSummary(
        recent=orders,
        total=len(orders),
        open=sum(1 for order in orders if order.status == OrdenStatus.OPEN),
        in_progress=sum(1 for order in orders if order.status == OrdenStatus.IN_PROGRESS),
        resolved=sum(1 for order in orders if order.status == OrdenStatus.RESOLVED),
    )


class HomeService(BaseService):
    """Service layer for the home dashboard."""

    def __init__(
        self,
        work_orders: WorkOrderService,
        logger: StructuredLogger,
        recent_limit: int = 10,
    ) -> None:
        super().__init__(logger)
        self._work_orders = work_orders
        self._recent_limit = recent_limit

    def load_summary(self, user: UserProfile) -> ServiceResult[HomeSummary]:
        result = self._work_orders.list_work_orders(user, limit=self._recent_limit)
        if not result.success:
            return ServiceResult(success=False, error=result.error, status_code=result.status_code)
        return ServiceResult(success=True, data=summarize_recent(result.data or []))

    def subscribe_summary(
        self,
        user: UserProfile,
        on_change: Callable[[HomeSummary], None],
    ) -> ServiceResult[Subscription]:
        """Push a fresh :class:`HomeSummary` whenever the recent orders change."""
        return self._work_orders.subscribe_work_orders(
            user,
            lambda orders: on_change(summarize_recent(orders)),
            limit=self._recent_limit,
        )
