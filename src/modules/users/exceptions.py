"""User domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
subclasses an error kind from ``modules.core.exceptions`` so the API
exception handler can render it without per-view ``try/except`` blocks.
"""

from __future__ import annotations

from modules.core.exceptions import BusinessRuleViolation, Conflict, NotFound


class UserNotFound(NotFound):
    """The requested user does not exist."""


class UserAlreadyExists(Conflict):
    """A user with the same (normalized) email already exists."""


class InactiveUser(BusinessRuleViolation):
    """The user exists but is not ``active`` and cannot place orders."""


class UserHasActiveOrders(BusinessRuleViolation):
    """The user still owns pending, confirmed or shipped orders."""
