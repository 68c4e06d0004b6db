"""Unit tests for ProductService.

Covers:
- Creation with SKU uniqueness and initial status derived from stock.
- Explicit patch semantics and SKU re-validation.
- Discontinuation guard while open orders exist.
- Administrative stock adjustments through the ledger.
- Listing filters, category summary and low-stock report.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.core.exceptions import ErrorKind
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.products.dtos import (
    CreateProductDTO,
    ProductFilterDTO,
    StockAdjustmentDTO,
    UpdateProductDTO,
)
from modules.products.exceptions import (
    InsufficientStock,
    ProductAlreadyExists,
    ProductHasOpenOrders,
    ProductNotFound,
)
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ProductService(repository=ProductDjangoRepository())


class TestCreateProduct:
    def test_create_with_stock_is_available(self, service):
        dto = service.create_product(
            CreateProductDTO(name="MacBook Pro", price=2499.99, stock_quantity=5)
        )
        assert dto.price == Decimal("2499.99")
        assert dto.stock_quantity == 5
        assert dto.status == ProductStatus.AVAILABLE
        assert dto.category == "general"

    def test_create_without_stock_is_out_of_stock(self, service):
        dto = service.create_product(CreateProductDTO(name="Widget", price="3.50"))
        assert dto.stock_quantity == 0
        assert dto.status == ProductStatus.OUT_OF_STOCK

    def test_duplicate_sku_conflict(self, service):
        service.create_product(CreateProductDTO(name="Widget", price="1.00", sku="W-1"))
        with pytest.raises(ProductAlreadyExists):
            service.create_product(
                CreateProductDTO(name="Gadget", price="1.00", sku="w-1")
            )
        assert Product.objects.count() == 1

    def test_duplicate_sku_caught_at_commit(self, service, product):
        with patch.object(ProductDjangoRepository, "get_by_sku", return_value=None):
            with pytest.raises(ProductAlreadyExists) as exc_info:
                service.create_product(
                    CreateProductDTO(name="Clone", price="1.00", sku="MBP-16")
                )
        assert exc_info.value.kind == ErrorKind.CONFLICT
        assert Product.objects.count() == 1

    def test_products_without_sku_do_not_conflict(self, service):
        service.create_product(CreateProductDTO(name="Widget", price="1.00"))
        service.create_product(CreateProductDTO(name="Gadget", price="1.00", sku=""))
        assert Product.objects.filter(sku__isnull=True).count() == 2


class TestUpdateProduct:
    def test_patch_price_only(self, service, product):
        result = service.update_product(
            str(product.id), UpdateProductDTO.model_validate({"price": "1999.00"})
        )
        assert result.price == Decimal("1999.00")
        assert result.name == "MacBook Pro"
        assert result.stock_quantity == 5

    def test_clear_sku_and_description(self, service, product):
        result = service.update_product(
            str(product.id),
            UpdateProductDTO.model_validate({"sku": None, "description": None}),
        )
        assert result.sku is None
        assert result.description == ""

    def test_sku_taken_by_other_product(self, service, product, make_product):
        other = make_product(sku="OTHER-1")
        with pytest.raises(ProductAlreadyExists):
            service.update_product(
                str(other.id), UpdateProductDTO.model_validate({"sku": "mbp-16"})
            )

    def test_sku_taken_caught_at_commit(self, service, product, make_product):
        other = make_product(sku="OTHER-1")
        with patch.object(ProductDjangoRepository, "get_by_sku", return_value=None):
            with pytest.raises(ProductAlreadyExists):
                service.update_product(
                    str(other.id), UpdateProductDTO.model_validate({"sku": "MBP-16"})
                )
        other.refresh_from_db()
        assert other.sku == "OTHER-1"

    def test_missing_product(self, service):
        with pytest.raises(ProductNotFound):
            service.update_product(
                str(uuid4()), UpdateProductDTO.model_validate({"name": "Ghost"})
            )

    def test_price_change_does_not_touch_existing_orders(self, service, product, user):
        order = Order.objects.create(
            user=user, product=product, quantity=2, unit_price=product.price
        )
        service.update_product(
            str(product.id), UpdateProductDTO.model_validate({"price": "10.00"})
        )
        order.refresh_from_db()
        assert order.unit_price == Decimal("2499.99")
        assert order.total_price == Decimal("4999.98")


class TestDiscontinueProduct:
    def test_discontinue(self, service, product):
        result = service.discontinue_product(str(product.id))
        assert result.status == ProductStatus.DISCONTINUED

    def test_status_written_through_repository(self, service, product):
        with patch.object(
            ProductDjangoRepository,
            "set_status",
            autospec=True,
            side_effect=ProductDjangoRepository.set_status,
        ) as set_status:
            service.discontinue_product(str(product.id))
        set_status.assert_called_once()
        assert set_status.call_args.args[2] == ProductStatus.DISCONTINUED
        product.refresh_from_db()
        assert product.status == ProductStatus.DISCONTINUED

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_blocked_by_open_orders(self, service, product, user, status):
        Order.objects.create(
            user=user, product=product, quantity=1, unit_price=product.price, status=status
        )
        with pytest.raises(ProductHasOpenOrders):
            service.discontinue_product(str(product.id))
        product.refresh_from_db()
        assert product.status == ProductStatus.AVAILABLE

    def test_shipped_orders_do_not_block(self, service, product, user):
        Order.objects.create(
            user=user,
            product=product,
            quantity=1,
            unit_price=product.price,
            status=OrderStatus.SHIPPED,
        )
        assert (
            service.discontinue_product(str(product.id)).status
            == ProductStatus.DISCONTINUED
        )

    def test_missing_product(self, service):
        with pytest.raises(ProductNotFound):
            service.discontinue_product(str(uuid4()))


class TestAdjustStock:
    def test_restock(self, service, make_product):
        product = make_product(stock_quantity=0, status=ProductStatus.OUT_OF_STOCK)
        result = service.adjust_stock(
            str(product.id), StockAdjustmentDTO(quantity=7, direction="add")
        )
        assert result.stock_quantity == 7
        assert result.status == ProductStatus.AVAILABLE

    def test_write_off_too_much(self, service, product):
        with pytest.raises(InsufficientStock):
            service.adjust_stock(
                str(product.id), StockAdjustmentDTO(quantity=6, direction="subtract")
            )
        product.refresh_from_db()
        assert product.stock_quantity == 5


class TestQueries:
    def test_get_product(self, service, product):
        assert service.get_product(str(product.id)).sku == "MBP-16"

    def test_get_product_missing(self, service):
        with pytest.raises(ProductNotFound):
            service.get_product(str(uuid4()))

    def test_get_by_sku_case_insensitive(self, service, product):
        assert service.get_product_by_sku("mbp-16").id == product.id

    def test_get_by_sku_missing(self, service):
        with pytest.raises(ProductNotFound):
            service.get_product_by_sku("NOPE-1")

    def test_list_filters(self, service, make_product):
        make_product(name="Cheap Pen", price=Decimal("1.00"), category="office")
        make_product(name="Desk Lamp", price=Decimal("40.00"), category="office")
        make_product(name="Laptop", price=Decimal("900.00"), category="laptops")
        make_product(
            name="Old Lamp",
            price=Decimal("20.00"),
            category="office",
            stock_quantity=0,
            status=ProductStatus.OUT_OF_STOCK,
        )

        page = service.list_products(
            ProductFilterDTO(category="OFFICE", min_price="10", in_stock=True)
        )
        assert [p.name for p in page.results] == ["Desk Lamp"]

        page = service.list_products(ProductFilterDTO(search="lamp"))
        assert [p.name for p in page.results] == ["Desk Lamp", "Old Lamp"]

        page = service.list_products(ProductFilterDTO(status="out_of_stock"))
        assert [p.name for p in page.results] == ["Old Lamp"]

        page = service.list_products(ProductFilterDTO(ordering="-price"))
        assert page.results[0].name == "Laptop"

    def test_list_categories(self, service, make_product):
        make_product(category="office", price=Decimal("10.00"))
        make_product(category="office", price=Decimal("20.00"), status=ProductStatus.DISCONTINUED)
        make_product(category="laptops", price=Decimal("900.00"))

        rows = service.list_categories()
        assert [r.category for r in rows] == ["laptops", "office"]
        office = rows[1]
        assert office.product_count == 2
        assert office.available_count == 1
        assert office.avg_price == Decimal("15.00")

    def test_list_low_stock(self, service, make_product):
        make_product(name="B", stock_quantity=3)
        make_product(name="A", stock_quantity=3)
        make_product(name="Z", stock_quantity=0, status=ProductStatus.OUT_OF_STOCK)
        make_product(name="Plenty", stock_quantity=50)
        make_product(name="Gone", stock_quantity=1, status=ProductStatus.DISCONTINUED)

        names = [p.name for p in service.list_low_stock(threshold=5)]
        assert names == ["Z", "A", "B"]

    def test_low_stock_default_threshold(self, service, make_product, settings):
        settings.LOW_STOCK_THRESHOLD = 2
        make_product(name="Two", stock_quantity=2)
        make_product(name="Three", stock_quantity=3)
        assert [p.name for p in service.list_low_stock()] == ["Two"]
