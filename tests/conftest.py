from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.models import User, UserStatus


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Entity factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make(**overrides) -> User:
        counter["n"] += 1
        data = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "status": UserStatus.ACTIVE,
        }
        data.update(overrides)
        return User.objects.create(**data)

    return _make


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']}",
            "price": Decimal("10.00"),
            "stock_quantity": 10,
            "sku": f"SKU-{counter['n']:04d}",
            "status": ProductStatus.AVAILABLE,
        }
        data.update(overrides)
        return Product.objects.create(**data)

    return _make


@pytest.fixture()
def user(make_user):
    return make_user(name="John Doe", email="john@example.com", phone="5551234567")


@pytest.fixture()
def product(make_product):
    return make_product(
        name="MacBook Pro",
        price=Decimal("2499.99"),
        stock_quantity=5,
        sku="MBP-16",
        category="laptops",
        description="16-inch laptop",
    )


@pytest.fixture()
def order_service():
    from modules.users.repositories.django_repository import UserDjangoRepository

    return OrderService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )
