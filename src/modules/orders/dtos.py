"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation.
- ``OrderFilterDTO``: list predicates.
- ``OrderOutputDTO``: the order row.
- ``OrderDetailDTO``: the order joined with user and product fields.
- ``OrderAnalyticsDTO``: counts and revenue figures over a set of orders.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.core.validators import clean_optional_string

if TYPE_CHECKING:
    from modules.orders.models import Order


class OrderStatusEnum(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ORDER_ORDERING_FIELDS = (
    "order_date",
    "created_at",
    "updated_at",
    "total_price",
    "quantity",
    "status",
)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Quantity bounds (positive, at most ``MAX_ORDER_QUANTITY``) are checked
    by the service so that every caller, not only the API, is covered.
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    product_id: UUID
    quantity: int
    notes: Optional[str] = Field(default=None, max_length=200)

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_must_be_integer(cls, v):
        if isinstance(v, bool):
            raise ValueError("Quantity must be an integer.")
        return v

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return clean_optional_string(v)


class OrderFilterDTO(BaseModel):
    """Predicates accepted by ``OrderService.list_orders``."""

    model_config = ConfigDict(frozen=True)

    status: Optional[OrderStatusEnum] = None
    user_id: Optional[UUID] = None
    product_id: Optional[UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_total: Optional[Decimal] = Field(default=None, ge=0)
    max_total: Optional[Decimal] = Field(default=None, ge=0)
    include_details: bool = False
    ordering: str = "-order_date"

    @field_validator("ordering")
    @classmethod
    def ordering_must_be_allowed(cls, v: str) -> str:
        if v.lstrip("-") not in ORDER_ORDERING_FIELDS:
            raise ValueError(
                f"Ordering must be one of: {', '.join(ORDER_ORDERING_FIELDS)}."
            )
        return v

    @model_validator(mode="after")
    def ranges_are_ordered(self) -> Self:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from cannot be after date_to.")
        if (
            self.min_total is not None
            and self.max_total is not None
            and self.min_total > self.max_total
        ):
            raise ValueError("min_total cannot be greater than max_total.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderOutputDTO(BaseModel):
    """Immutable DTO for order API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    user_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    status: str
    order_date: datetime
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance."""
        return cls(**_order_fields(order))


class OrderDetailDTO(OrderOutputDTO):
    """Order joined with the owning user and the ordered product.

    Assumes ``user`` and ``product`` are loaded with ``select_related``.
    """

    user_name: str
    user_email: str
    user_phone: Optional[str]
    product_name: str
    product_sku: Optional[str]
    product_category: str
    product_description: str

    @classmethod
    def from_entity(cls, order: Order) -> OrderDetailDTO:
        user = order.user
        product = order.product
        return cls(
            **_order_fields(order),
            user_name=user.name,
            user_email=user.email,
            user_phone=user.phone,
            product_name=product.name,
            product_sku=product.sku,
            product_category=product.category,
            product_description=product.description,
        )


class OrderAnalyticsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    pending_orders: int
    confirmed_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    total_revenue: Decimal
    avg_order_value: Decimal
    delivered_revenue: Decimal
    cancellation_rate: Decimal


def _order_fields(order: Order) -> dict:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "product_id": order.product_id,
        "quantity": order.quantity,
        "unit_price": order.unit_price,
        "total_price": order.total_price,
        "status": order.status,
        "order_date": order.order_date,
        "notes": order.notes,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }
