"""Order repository interface.

Extends ``IRepository[Order]`` with the operations the Order Workflow
Engine needs: insertion of a priced order row, status writes on an
already-locked row, filtered listing and analytics aggregation.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order row.

        ``data`` must include ``user_id``, ``product_id``, ``quantity`` and
        ``unit_price``, and optionally ``notes``.  ``total_price`` is
        derived, never supplied.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its user and product joined."""

    @abstractmethod
    def set_status(self, entity: Order, status: str, notes: Optional[str]) -> Order:
        """Persist a new status (and notes) on an already-locked order."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "-order_date"
    ) -> "models.QuerySet[Order]":
        """Return a lazily evaluated, filtered and ordered queryset."""

    @abstractmethod
    def analytics(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Aggregate counts per status and revenue figures."""
