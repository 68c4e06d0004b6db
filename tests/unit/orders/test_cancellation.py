"""Unit tests for order cancellation with stock release.

Covers:
- Cancel from pending / confirmed / shipped: status, reason and stock restored.
- out_of_stock products become available again; discontinued stays.
- Cancel on cancelled or delivered orders is rejected and stock is not
  double-restored.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.exceptions import ErrorKind
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import OrderNotCancellable, OrderNotFound
from modules.orders.models import Order
from modules.products.models import ProductStatus

pytestmark = pytest.mark.unit


def _place(order_service, user, product, quantity):
    return order_service.create_order(
        CreateOrderDTO(user_id=user.id, product_id=product.id, quantity=quantity)
    )


class TestCancelOrder:
    @pytest.mark.parametrize(
        "status", [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.SHIPPED]
    )
    def test_cancel_restores_stock(self, order_service, user, product, status):
        placed = _place(order_service, user, product, 2)
        Order.objects.filter(id=placed.id).update(status=status)

        result = order_service.cancel_order(placed.id, reason="changed my mind")

        assert result.status == OrderStatus.CANCELLED
        assert result.notes == "changed my mind"
        product.refresh_from_db()
        assert product.stock_quantity == 5

    def test_cancel_reopens_sold_out_product(self, order_service, user, make_product):
        product = make_product(stock_quantity=2)
        placed = _place(order_service, user, product, 2)
        product.refresh_from_db()
        assert product.status == ProductStatus.OUT_OF_STOCK

        order_service.cancel_order(placed.id)

        product.refresh_from_db()
        assert product.stock_quantity == 2
        assert product.status == ProductStatus.AVAILABLE

    def test_cancel_keeps_discontinued_status(self, order_service, user, product):
        placed = _place(order_service, user, product, 1)
        product.refresh_from_db()
        product.status = ProductStatus.DISCONTINUED
        product.save(update_fields=["status"])

        order_service.cancel_order(placed.id)

        product.refresh_from_db()
        assert product.stock_quantity == 5
        assert product.status == ProductStatus.DISCONTINUED

    def test_cancel_twice_rejected_without_double_restore(
        self, order_service, user, product
    ):
        placed = _place(order_service, user, product, 2)
        order_service.cancel_order(placed.id)

        with pytest.raises(OrderNotCancellable, match="Order is already cancelled") as exc_info:
            order_service.cancel_order(placed.id)
        assert exc_info.value.kind == ErrorKind.BUSINESS_RULE_VIOLATION

        product.refresh_from_db()
        assert product.stock_quantity == 5

    def test_cancel_delivered_rejected(self, order_service, user, product):
        placed = _place(order_service, user, product, 1)
        Order.objects.filter(id=placed.id).update(status=OrderStatus.DELIVERED)

        with pytest.raises(OrderNotCancellable, match="Cannot cancel delivered order"):
            order_service.cancel_order(placed.id)

        product.refresh_from_db()
        assert product.stock_quantity == 4
        assert Order.objects.get(id=placed.id).status == OrderStatus.DELIVERED

    def test_blank_reason_stored_as_null(self, order_service, user, product):
        placed = _place(order_service, user, product, 1)
        result = order_service.cancel_order(placed.id, reason="   ")
        assert result.notes is None

    def test_cancel_missing_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.cancel_order(uuid4())

    def test_cancel_updates_timestamp(self, order_service, user, product):
        placed = _place(order_service, user, product, 1)
        result = order_service.cancel_order(placed.id)
        assert result.updated_at >= placed.updated_at
