"""Error taxonomy shared by every module.

Each concrete domain exception subclasses exactly one *kind*.  The kind is
machine-distinguishable and independent of transport: the DRF exception
handler maps it to an HTTP status, tests assert on it directly.

- ``NotFound``: referenced user/product/order does not exist.
- ``Conflict``: uniqueness violation or illegal state transition.
- ``ValidationFailed``: malformed or missing input, fixable by the caller.
- ``BusinessRuleViolation``: insufficient stock, inactive user,
  unavailable product, cancel on a terminal order.
- ``StorageFailure``: the store is unreachable or rejected a write
  unexpectedly.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION_FAILED = "validation_failed"
    BUSINESS_RULE_VIOLATION = "business_rule_violation"
    STORAGE_FAILURE = "storage_failure"


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class DomainError(Exception):
    """Base class for every error raised by the service layer.

    ``context`` carries the identifiers and quantities needed to reproduce
    the failure; it is logged, never rendered to clients.
    """

    kind: ErrorKind = ErrorKind.BUSINESS_RULE_VIOLATION

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def code(self) -> str:
        """Snake-case code derived from the class name (``InsufficientStock`` -> ``insufficient_stock``)."""
        return _CAMEL_BOUNDARY.sub("_", type(self).__name__).lower()


class NotFound(DomainError):
    kind = ErrorKind.NOT_FOUND


class Conflict(DomainError):
    kind = ErrorKind.CONFLICT


class ValidationFailed(DomainError):
    kind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, attr: str | None = None, **context: Any) -> None:
        super().__init__(message, **context)
        self.attr = attr


class BusinessRuleViolation(DomainError):
    kind = ErrorKind.BUSINESS_RULE_VIOLATION


class StorageFailure(DomainError):
    kind = ErrorKind.STORAGE_FAILURE
