"""Order model.

Business rules implemented:
- Status transitions follow ``VALID_TRANSITIONS`` (enforced at service layer).
- ``unit_price`` is a snapshot of the product price at creation time and
  never changes afterwards, even if the product price is updated.
- ``total_price`` is always ``unit_price * quantity`` in exact decimal
  arithmetic (recalculated on save).
- User and product FKs use PROTECT to preserve financial history.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, OrderStatus

CENT = Decimal("0.01")


def compute_total(unit_price: Decimal, quantity: int) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENT)


class Order(BaseModel):
    """Single-product order placed by a user."""

    user: models.ForeignKey = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=8,
        decimal_places=2,
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    order_date: models.DateTimeField = models.DateTimeField(default=timezone.now)
    notes: models.CharField = models.CharField(  # noqa: DJ01
        max_length=200, null=True, blank=True
    )

    class Meta:
        db_table = "orders"
        ordering = ["-order_date"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-order_date"], name="orders_date_idx"),
            models.Index(fields=["user", "status"], name="orders_user_status_idx"),
            models.Index(fields=["product", "status"], name="orders_product_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="orders_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(status__in=OrderStatus.values),
                name="orders_status_valid",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = compute_total(self.unit_price, self.quantity)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"
