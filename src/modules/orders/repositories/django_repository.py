"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The
repository never opens its own unit of work for order mutations: the
service wraps ``create``/``set_status`` together with the Stock Ledger
call in one ``transaction.atomic`` block.

Concurrency control on status updates uses ``select_for_update()``
to prevent race conditions (no ``version`` field exists on the model).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Avg, Count, Q, Sum

from modules.orders.constants import OrderStatus
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order row with the snapshot ``unit_price``."""
        order = Order(
            user_id=data["user_id"],
            product_id=data["product_id"],
            quantity=data["quantity"],
            unit_price=data["unit_price"],
            notes=data.get("notes"),
        )
        order.save()
        logger.info(
            "order.inserted",
            order_id=str(order.id),
            total_price=str(order.total_price),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its user and product (single JOIN).

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("user", "product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked; the product row is locked separately
        by the Stock Ledger.  Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None, ordering: str = "-order_date"
    ) -> "models.QuerySet[Order]":
        """List orders through ``OrderFilter`` with user and product joined.

        Supported filter keys: ``status``, ``user_id``, ``product_id``,
        ``date_from``, ``date_to``, ``min_total``, ``max_total``.
        """
        queryset = Order.objects.select_related("user", "product")
        if filters:
            queryset = OrderFilter(data=filters, queryset=queryset).qs
        return queryset.order_by(ordering, "id")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def set_status(self, entity: Order, status: str, notes: Optional[str]) -> Order:
        entity.status = status
        entity.notes = notes
        entity.save(update_fields=["status", "notes"])
        return entity

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def analytics(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        queryset = Order.objects.all()
        if filters:
            queryset = OrderFilter(data=filters, queryset=queryset).qs

        per_status = {
            f"{status}_orders": Count("id", filter=Q(status=status))
            for status in OrderStatus.values
        }
        return queryset.order_by().aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("total_price"),
            avg_order_value=Avg("total_price"),
            delivered_revenue=Sum(
                "total_price", filter=Q(status=OrderStatus.DELIVERED)
            ),
            **per_status,
        )
