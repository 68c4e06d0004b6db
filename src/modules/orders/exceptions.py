"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
subclasses an error kind from ``modules.core.exceptions``.
"""

from __future__ import annotations

from modules.core.exceptions import (
    BusinessRuleViolation,
    Conflict,
    NotFound,
    ValidationFailed,
)


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class InvalidOrderStatus(Conflict):
    """A status transition outside the state machine was attempted."""


class OrderNotCancellable(BusinessRuleViolation):
    """Cancel was requested on a ``cancelled`` or ``delivered`` order."""


class InvalidOrderQuantity(ValidationFailed):
    """Quantity is not a positive integer or exceeds the configured maximum."""


class UnknownOrderStatus(ValidationFailed):
    """The requested status is not one of the order statuses."""
