"""
Repository Layer.

Data access objects built on the document store.
Each repository receives the DocumentStore and StructuredLogger via __init__.
"""

from ot_tracker.repositories.base_repository import BaseRepository
from ot_tracker.repositories.user_repository import UserRepository
from ot_tracker.repositories.work_order_repository import WorkOrderRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "WorkOrderRepository",
]
