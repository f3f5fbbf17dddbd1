from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models for short imports:
    from ot_tracker.models import UserProfile, WorkOrder, UserRole, OrdenStatus
"""

from ot_tracker.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    AuthStateEvent,
    Identity,
    ReconciliationOutcome,
    ReconciliationResult,
)
from ot_tracker.models.enums import (
    OrdenActivity,
    OrdenCategory,
    OrdenPriority,
    OrdenStatus,
    UserRole,
)
from ot_tracker.models.service_models import OrderStatistics, ServiceResult
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder, WorkOrderInput

__all__ = [
    "AuthErrorCode",
    "AuthResult",
    "AuthStateEvent",
    "Identity",
    "OrderStatistics",
    "OrdenActivity",
    "OrdenCategory",
    "OrdenPriority",
    "OrdenStatus",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "ServiceResult",
    "UserProfile",
    "UserRole",
    "WorkOrder",
    "WorkOrderInput",
]
