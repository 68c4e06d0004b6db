"""Unit tests for the order status state machine.

Covers:
- Every legal transition succeeds and persists notes.
- Every illegal transition raises Conflict and leaves status unchanged.
- Unknown statuses and missing orders.
- A transition to cancelled restores stock.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.exceptions import ErrorKind
from modules.orders.constants import VALID_TRANSITIONS, OrderStatus
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderNotFound,
    UnknownOrderStatus,
)
from modules.orders.models import Order
from modules.products.models import ProductStatus

pytestmark = pytest.mark.unit

LEGAL = [
    (current, target)
    for current, targets in VALID_TRANSITIONS.items()
    for target in sorted(targets)
]
ILLEGAL = [
    (current, target)
    for current in OrderStatus.values
    for target in OrderStatus.values
    if target not in VALID_TRANSITIONS[current]
]


@pytest.fixture()
def make_order(user, product):
    def _make(status=OrderStatus.PENDING, quantity=1):
        return Order.objects.create(
            user=user,
            product=product,
            quantity=quantity,
            unit_price=product.price,
            status=status,
        )

    return _make


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self):
        assert VALID_TRANSITIONS[OrderStatus.DELIVERED] == set()
        assert VALID_TRANSITIONS[OrderStatus.CANCELLED] == set()

    def test_model_helpers(self, make_order):
        order = make_order(status=OrderStatus.CONFIRMED)
        assert order.can_transition_to(OrderStatus.SHIPPED)
        assert not order.can_transition_to(OrderStatus.PENDING)
        assert not order.is_terminal
        order.status = OrderStatus.DELIVERED
        assert order.is_terminal


class TestUpdateStatus:
    @pytest.mark.parametrize(("current", "target"), LEGAL)
    def test_legal_transitions(self, order_service, make_order, current, target):
        order = make_order(status=current)
        result = order_service.update_status(order.id, target, notes="moved on")
        assert result.status == target
        assert result.notes == "moved on"
        order.refresh_from_db()
        assert order.status == target

    @pytest.mark.parametrize(("current", "target"), ILLEGAL)
    def test_illegal_transitions(self, order_service, make_order, current, target):
        order = make_order(status=current)
        with pytest.raises(InvalidOrderStatus) as exc_info:
            order_service.update_status(order.id, target)
        assert exc_info.value.kind == ErrorKind.CONFLICT
        assert str(exc_info.value) == f"Cannot change status from {current} to {target}"
        order.refresh_from_db()
        assert order.status == current

    def test_delivered_to_pending_rejected(self, order_service, make_order):
        order = make_order(status=OrderStatus.DELIVERED)
        with pytest.raises(InvalidOrderStatus, match="from delivered to pending"):
            order_service.update_status(str(order.id), "pending")
        order.refresh_from_db()
        assert order.status == OrderStatus.DELIVERED

    def test_unknown_status(self, order_service, make_order):
        order = make_order()
        with pytest.raises(UnknownOrderStatus) as exc_info:
            order_service.update_status(order.id, "lost")
        assert exc_info.value.attr == "status"
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_missing_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.update_status(uuid4(), OrderStatus.CONFIRMED)

    def test_notes_overwritten_with_given_value(self, order_service, make_order):
        order = make_order()
        order_service.update_status(order.id, OrderStatus.CONFIRMED, notes="first")
        result = order_service.update_status(order.id, OrderStatus.SHIPPED)
        assert result.notes is None

    def test_total_price_unchanged_by_transitions(self, order_service, make_order):
        order = make_order(quantity=2)
        order_service.update_status(order.id, OrderStatus.CONFIRMED)
        order_service.update_status(order.id, OrderStatus.SHIPPED)
        order_service.update_status(order.id, OrderStatus.DELIVERED)
        order.refresh_from_db()
        assert order.total_price == Decimal("4999.98")
        assert order.total_price == order.unit_price * order.quantity


class TestTransitionToCancelled:
    def test_restores_stock(self, order_service, make_order, product):
        order = make_order(status=OrderStatus.SHIPPED, quantity=2)
        product.stock_quantity = 3
        product.save(update_fields=["stock_quantity"])

        order_service.update_status(order.id, OrderStatus.CANCELLED, notes="lost parcel")

        product.refresh_from_db()
        assert product.stock_quantity == 5
        order.refresh_from_db()
        assert order.notes == "lost parcel"

    def test_reopens_out_of_stock_product(self, order_service, make_order, product):
        order = make_order(quantity=5)
        product.stock_quantity = 0
        product.status = ProductStatus.OUT_OF_STOCK
        product.save(update_fields=["stock_quantity", "status"])

        order_service.update_status(order.id, OrderStatus.CANCELLED)

        product.refresh_from_db()
        assert product.stock_quantity == 5
        assert product.status == ProductStatus.AVAILABLE
