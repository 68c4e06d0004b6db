"""Product domain exceptions.

Raised by the Service Layer, the Availability Validator and the Stock
Ledger.  Each subclasses an error kind from ``modules.core.exceptions``.
"""

from __future__ import annotations

from modules.core.exceptions import (
    BusinessRuleViolation,
    Conflict,
    NotFound,
    ValidationFailed,
)


class ProductNotFound(NotFound):
    """The requested product does not exist."""


class ProductAlreadyExists(Conflict):
    """A product with the same SKU already exists."""


class InsufficientStock(BusinessRuleViolation):
    """Not enough stock to satisfy the requested quantity."""


class ProductUnavailable(BusinessRuleViolation):
    """The product cannot be sold in its current status (e.g. discontinued)."""


class ProductHasOpenOrders(BusinessRuleViolation):
    """Pending or confirmed orders still reference the product."""


class InvalidStockAdjustment(ValidationFailed):
    """A stock delta that is not a positive integer."""
