"""Unit tests for the shared error taxonomy."""

from __future__ import annotations

import pytest

from modules.core.exceptions import (
    BusinessRuleViolation,
    Conflict,
    DomainError,
    ErrorKind,
    NotFound,
    StorageFailure,
    ValidationFailed,
)
from modules.orders.exceptions import (
    InvalidOrderQuantity,
    InvalidOrderStatus,
    OrderNotCancellable,
    OrderNotFound,
)
from modules.products.exceptions import (
    InsufficientStock,
    ProductAlreadyExists,
    ProductUnavailable,
)
from modules.users.exceptions import InactiveUser, UserAlreadyExists, UserNotFound

pytestmark = pytest.mark.unit


class TestErrorKinds:
    @pytest.mark.parametrize(
        ("exc_class", "kind"),
        [
            (UserNotFound, ErrorKind.NOT_FOUND),
            (OrderNotFound, ErrorKind.NOT_FOUND),
            (UserAlreadyExists, ErrorKind.CONFLICT),
            (ProductAlreadyExists, ErrorKind.CONFLICT),
            (InvalidOrderStatus, ErrorKind.CONFLICT),
            (InvalidOrderQuantity, ErrorKind.VALIDATION_FAILED),
            (InsufficientStock, ErrorKind.BUSINESS_RULE_VIOLATION),
            (InactiveUser, ErrorKind.BUSINESS_RULE_VIOLATION),
            (ProductUnavailable, ErrorKind.BUSINESS_RULE_VIOLATION),
            (OrderNotCancellable, ErrorKind.BUSINESS_RULE_VIOLATION),
            (StorageFailure, ErrorKind.STORAGE_FAILURE),
        ],
    )
    def test_each_error_belongs_to_one_kind(self, exc_class, kind):
        assert exc_class.kind == kind
        assert issubclass(exc_class, DomainError)

    def test_kind_bases(self):
        assert issubclass(UserNotFound, NotFound)
        assert issubclass(InvalidOrderStatus, Conflict)
        assert issubclass(InvalidOrderQuantity, ValidationFailed)
        assert issubclass(InsufficientStock, BusinessRuleViolation)


class TestDomainError:
    def test_code_is_snake_case_class_name(self):
        assert InsufficientStock("x").code == "insufficient_stock"
        assert OrderNotFound("x").code == "order_not_found"

    def test_message_and_context(self):
        exc = InsufficientStock(
            "Insufficient stock. Available: 1, Requested: 2",
            product_id="p-1",
            available=1,
            requested=2,
        )
        assert str(exc) == "Insufficient stock. Available: 1, Requested: 2"
        assert exc.message == str(exc)
        assert exc.context == {"product_id": "p-1", "available": 1, "requested": 2}

    def test_validation_failed_carries_attr(self):
        exc = InvalidOrderQuantity("Quantity must be a positive integer.", attr="quantity")
        assert exc.attr == "quantity"
        assert exc.context == {}
