"""Unit tests for order read models: get, list, analytics and DTO rules."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.utils import timezone
from pydantic import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    OrderDetailDTO,
    OrderFilterDTO,
    OrderOutputDTO,
)
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order, compute_total

pytestmark = pytest.mark.unit


@pytest.fixture()
def make_order(user, product):
    def _make(status=OrderStatus.PENDING, quantity=1, order_user=None,
              order_product=None, days_ago=0):
        target = order_product or product
        order = Order.objects.create(
            user=order_user or user,
            product=target,
            quantity=quantity,
            unit_price=target.price,
            status=status,
        )
        if days_ago:
            Order.objects.filter(id=order.id).update(
                order_date=timezone.now() - timedelta(days=days_ago)
            )
        return order

    return _make


class TestOrderModel:
    def test_compute_total_is_exact(self):
        assert compute_total(Decimal("19.99"), 3) == Decimal("59.97")
        assert compute_total(Decimal("0.10"), 3) == Decimal("0.30")

    def test_total_recomputed_on_save(self, make_order):
        order = make_order(quantity=2)
        assert order.total_price == Decimal("4999.98")
        order.quantity = 1
        order.save()
        order.refresh_from_db()
        assert order.total_price == Decimal("2499.99")


class TestGetOrder:
    def test_get_order_joined(self, order_service, make_order):
        order = make_order()
        result = order_service.get_order(str(order.id))
        assert isinstance(result, OrderDetailDTO)
        assert result.id == order.id
        assert result.product_name == "MacBook Pro"
        assert result.user_email == "john@example.com"

    def test_missing(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order(str(uuid4()))

    def test_malformed_id(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("nope")


class TestListOrders:
    def test_filters(self, order_service, make_order, make_user, make_product):
        other_user = make_user()
        cheap = make_product(price=Decimal("5.00"))
        make_order(status=OrderStatus.PENDING)
        make_order(status=OrderStatus.CONFIRMED, order_user=other_user)
        make_order(status=OrderStatus.PENDING, order_product=cheap, quantity=2)

        page = order_service.list_orders(OrderFilterDTO(status="pending"))
        assert page.total == 2

        page = order_service.list_orders(OrderFilterDTO(user_id=other_user.id))
        assert page.total == 1
        assert page.results[0].status == OrderStatus.CONFIRMED

        page = order_service.list_orders(OrderFilterDTO(product_id=cheap.id))
        assert page.total == 1
        assert page.results[0].total_price == Decimal("10.00")

        page = order_service.list_orders(OrderFilterDTO(max_total="100"))
        assert page.total == 1

        page = order_service.list_orders(OrderFilterDTO(min_total="100"))
        assert page.total == 2

    def test_date_range(self, order_service, make_order):
        make_order(days_ago=10)
        make_order(days_ago=1)
        since = timezone.now() - timedelta(days=5)
        page = order_service.list_orders(OrderFilterDTO(date_from=since))
        assert page.total == 1

    def test_plain_rows_by_default(self, order_service, make_order):
        make_order()
        page = order_service.list_orders(OrderFilterDTO())
        assert type(page.results[0]) is OrderOutputDTO

    def test_include_details(self, order_service, make_order):
        make_order()
        page = order_service.list_orders(OrderFilterDTO(include_details=True))
        assert isinstance(page.results[0], OrderDetailDTO)
        assert page.results[0].product_sku == "MBP-16"

    def test_default_order_is_newest_first(self, order_service, make_order):
        old = make_order(days_ago=3)
        new = make_order()
        page = order_service.list_orders()
        assert [o.id for o in page.results] == [new.id, old.id]


class TestOrderFilterDTO:
    def test_date_range_must_be_ordered(self):
        now = timezone.now()
        with pytest.raises(ValidationError, match="date_from cannot be after"):
            OrderFilterDTO(date_from=now, date_to=now - timedelta(days=1))

    def test_total_range_must_be_ordered(self):
        with pytest.raises(ValidationError, match="min_total cannot be greater"):
            OrderFilterDTO(min_total="50", max_total="5")

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            OrderFilterDTO(status="lost")


class TestAnalytics:
    def test_empty(self, order_service):
        report = order_service.get_analytics()
        assert report.total_orders == 0
        assert report.total_revenue == Decimal("0.00")
        assert report.avg_order_value == Decimal("0.00")
        assert report.cancellation_rate == Decimal("0.00")

    def test_counts_and_revenue(self, order_service, make_order, make_product):
        cheap = make_product(price=Decimal("10.00"))
        make_order(order_product=cheap, status=OrderStatus.PENDING)
        make_order(order_product=cheap, status=OrderStatus.DELIVERED, quantity=2)
        make_order(order_product=cheap, status=OrderStatus.DELIVERED, quantity=3)
        make_order(order_product=cheap, status=OrderStatus.CANCELLED)

        report = order_service.get_analytics()
        assert report.total_orders == 4
        assert report.pending_orders == 1
        assert report.confirmed_orders == 0
        assert report.delivered_orders == 2
        assert report.cancelled_orders == 1
        assert report.total_revenue == Decimal("70.00")
        assert report.avg_order_value == Decimal("17.50")
        assert report.delivered_revenue == Decimal("50.00")
        assert report.cancellation_rate == Decimal("25.00")

    def test_scoped_to_user_and_dates(self, order_service, make_order, make_user):
        other = make_user()
        make_order()
        make_order(order_user=other)
        make_order(order_user=other, days_ago=30)

        report = order_service.get_analytics(user_id=other.id)
        assert report.total_orders == 2

        report = order_service.get_analytics(
            date_from=timezone.now() - timedelta(days=7), user_id=other.id
        )
        assert report.total_orders == 1
