"""
Service Layer Data Transfer Objects.

Pydantic models for validated output at service boundaries.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ot_tracker.models.work_order import WorkOrder

T = TypeVar("T")

__all__ = [
    "HomeSummary",
    "OrderStatistics",
    "ServiceResult",
]


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All mutating service methods return this, giving the view layer one
    contract: check ``success``, show ``error`` to the user otherwise.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200


class OrderStatistics(BaseModel):
    """Status counts over a set of work orders.

    ``other`` is derived so that
    ``resolved + open + in_progress + other == total`` always holds,
    including for status labels this client does not know about.
    """

    total: int = 0
    resolved: int = 0
    open: int = 0
    in_progress: int = 0
    other: int = 0

    def share(self, value: int) -> float:
        """Fraction of ``total`` represented by *value* (0 when empty)."""
        if self.total == 0:
            return 0.0
        return value / self.total


class HomeSummary(BaseModel):
    """The home dashboard: the newest visible orders and their status counts.

    Counts use exact status labels over ``recent`` only (``pending`` is
    not folded into ``open`` here, unlike :class:`OrderStatistics`).
    """

    recent: list[WorkOrder] = Field(default_factory=list)
    total: int = 0
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
