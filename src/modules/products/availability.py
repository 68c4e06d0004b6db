"""Availability Validator.

Decides, without side effects, whether an order for ``requested_qty``
units of a product may proceed, and captures the priced snapshot whose
``price`` becomes the order's frozen ``unit_price``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.products.exceptions import (
    InsufficientStock,
    ProductNotFound,
    ProductUnavailable,
)
from modules.products.models import ProductStatus

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class AvailabilityFailure(StrEnum):
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ProductSnapshot:
    id: UUID
    name: str
    price: Decimal
    stock_quantity: int
    status: str


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    snapshot: Optional[ProductSnapshot] = None
    failure: Optional[AvailabilityFailure] = None
    product_id: Optional[str] = None
    requested_qty: int = 0

    def raise_for_status(self) -> ProductSnapshot:
        """Return the snapshot, or raise the error matching the failure.

        The reason is carried verbatim as the error message.
        """
        if self.available and self.snapshot is not None:
            return self.snapshot

        context = {"product_id": self.product_id, "requested": self.requested_qty}
        if self.failure == AvailabilityFailure.NOT_FOUND:
            raise ProductNotFound(self.reason, **context)
        if self.failure == AvailabilityFailure.INSUFFICIENT_STOCK:
            raise InsufficientStock(self.reason, **context)
        raise ProductUnavailable(self.reason, **context)


class AvailabilityValidator:
    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def check(self, product_id: str, requested_qty: int) -> AvailabilityResult:
        pid = str(product_id)
        product = self._repo.get_by_id(pid)

        if product is None:
            result = AvailabilityResult(
                available=False,
                reason="Product not found",
                failure=AvailabilityFailure.NOT_FOUND,
                product_id=pid,
                requested_qty=requested_qty,
            )
        elif product.status == ProductStatus.OUT_OF_STOCK:
            result = AvailabilityResult(
                available=False,
                reason=(
                    f"Insufficient stock. Product is {product.status} "
                    f"(available: {product.stock_quantity}, requested: {requested_qty})"
                ),
                failure=AvailabilityFailure.INSUFFICIENT_STOCK,
                product_id=pid,
                requested_qty=requested_qty,
            )
        elif product.status != ProductStatus.AVAILABLE:
            result = AvailabilityResult(
                available=False,
                reason=f"Product is {product.status}",
                failure=AvailabilityFailure.UNAVAILABLE,
                product_id=pid,
                requested_qty=requested_qty,
            )
        elif product.stock_quantity < requested_qty:
            result = AvailabilityResult(
                available=False,
                reason=(
                    f"Insufficient stock. Available: {product.stock_quantity}, "
                    f"Requested: {requested_qty}"
                ),
                failure=AvailabilityFailure.INSUFFICIENT_STOCK,
                product_id=pid,
                requested_qty=requested_qty,
            )
        else:
            result = AvailabilityResult(
                available=True,
                snapshot=ProductSnapshot(
                    id=product.id,
                    name=product.name,
                    price=product.price,
                    stock_quantity=product.stock_quantity,
                    status=product.status,
                ),
                product_id=pid,
                requested_qty=requested_qty,
            )

        if not result.available:
            logger.info(
                "availability.rejected",
                product_id=pid,
                requested=requested_qty,
                reason=result.reason,
            )
        return result
