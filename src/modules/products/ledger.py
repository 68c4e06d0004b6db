"""Stock Ledger: the single code path that changes a product's stock.

Stock quantity and availability status move in lockstep:

- ``subtract``: ``new = current - delta``; rejected with
  ``InsufficientStock`` when ``new < 0``.
- ``add``: ``new = current + delta``, unconditionally.
- Afterwards ``new == 0`` forces ``out_of_stock``; ``new > 0`` turns a
  prior ``out_of_stock`` back into ``available``; any other status
  (``discontinued`` included) is left untouched.

``StockLedger.adjust`` locks the product row and must run inside the
caller's ``transaction.atomic`` block, so the stock change commits or
rolls back together with whatever order mutation triggered it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.products.exceptions import (
    InsufficientStock,
    InvalidStockAdjustment,
    ProductNotFound,
)
from modules.products.models import ProductStatus

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockDirection(StrEnum):
    ADD = "add"
    SUBTRACT = "subtract"


def reconcile_status(prior_status: str, new_quantity: int) -> str:
    """Status a product must carry once its stock becomes *new_quantity*."""
    if new_quantity == 0:
        return ProductStatus.OUT_OF_STOCK
    if prior_status == ProductStatus.OUT_OF_STOCK:
        return ProductStatus.AVAILABLE
    return prior_status


class StockLedger:
    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def adjust(
        self, product_id: str, delta: int, direction: StockDirection | str
    ) -> Product:
        """Apply *delta* units to the product's stock and reconcile its status.

        Raises:
            RuntimeError: when called outside an atomic block.
            InvalidStockAdjustment: *delta* is not a positive integer.
            ProductNotFound: no product with *product_id*.
            InsufficientStock: a subtract would make stock negative.
        """
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("StockLedger.adjust must run inside transaction.atomic.")

        if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
            raise InvalidStockAdjustment(
                "Stock adjustment must be a positive integer.",
                attr="quantity",
                product_id=str(product_id),
                delta=delta,
            )
        direction = StockDirection(direction)

        log = logger.bind(
            product_id=str(product_id), delta=delta, direction=str(direction)
        )

        product = self._repo.get_for_update(product_id)
        if not product:
            log.info("stock.product_not_found")
            raise ProductNotFound(
                f"Product {product_id} not found.", product_id=str(product_id)
            )

        current = product.stock_quantity
        if direction == StockDirection.SUBTRACT:
            new_quantity = current - delta
            if new_quantity < 0:
                log.warning("stock.insufficient", available=current, requested=delta)
                raise InsufficientStock(
                    f"Insufficient stock. Available: {current}, Requested: {delta}",
                    product_id=str(product_id),
                    available=current,
                    requested=delta,
                )
        else:
            new_quantity = current + delta

        prior_status = product.status
        product.stock_quantity = new_quantity
        product.status = reconcile_status(prior_status, new_quantity)
        self._repo.update_stock(product)

        log.info(
            "stock.adjusted",
            previous=current,
            current=new_quantity,
            previous_status=prior_status,
            status=product.status,
        )
        return product
