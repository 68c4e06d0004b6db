"""DRF exception handler producing one error envelope for the whole API.

Every failure is rendered as::

    {"type": "<kind>", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Domain errors keep their kind; DRF's own errors (parse errors, serializer
validation, 404/405) and Pydantic validation errors are folded into the same
shape.  Database errors that escape the service layer become
``storage_failure``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import DatabaseError
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response

from modules.core.exceptions import DomainError, ErrorKind, ValidationFailed

logger = structlog.get_logger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.BUSINESS_RULE_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error(code: str, detail: str, attr: Optional[str] = None) -> Dict[str, Any]:
    return {"code": code, "detail": detail, "attr": attr}


def _envelope(kind: str, errors: List[Dict[str, Any]], http_status: int) -> Response:
    return Response({"type": kind, "errors": errors}, status=http_status)


def _flatten_drf_detail(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten DRF's nested ``ErrorDetail`` structures into a flat list."""
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            errors.extend(_flatten_drf_detail(value, child))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            child = attr
            if isinstance(value, (dict, list)):
                child = f"{attr}.{index}" if attr else str(index)
            errors.extend(_flatten_drf_detail(value, child))
        return errors
    code = getattr(detail, "code", "invalid")
    return [_error(str(code), str(detail), attr)]


def domain_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, DomainError):
        attr = exc.attr if isinstance(exc, ValidationFailed) else None
        log = logger.bind(view=view_name, code=exc.code, kind=str(exc.kind), **exc.context)
        if exc.kind == ErrorKind.STORAGE_FAILURE:
            log.error("api.storage_failure", detail=exc.message)
        else:
            log.info("api.domain_error", detail=exc.message)
        return _envelope(
            str(exc.kind),
            [_error(exc.code, exc.message, attr)],
            STATUS_BY_KIND[exc.kind],
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            _error(
                err["type"],
                err["msg"],
                ".".join(str(part) for part in err["loc"]) or None,
            )
            for err in exc.errors()
        ]
        logger.info("api.validation_failed", view=view_name, error_count=len(errors))
        return _envelope(
            str(ErrorKind.VALIDATION_FAILED), errors, status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, DatabaseError):
        logger.error("api.storage_failure", view=view_name, error=str(exc))
        return _envelope(
            str(ErrorKind.STORAGE_FAILURE),
            [_error("storage_failure", "The data store is unavailable.")],
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    if isinstance(exc, exceptions.APIException):
        if isinstance(exc, (exceptions.ValidationError, exceptions.ParseError)):
            kind = str(ErrorKind.VALIDATION_FAILED)
        elif isinstance(exc, exceptions.NotFound):
            kind = str(ErrorKind.NOT_FOUND)
        else:
            kind = "client_error" if exc.status_code < 500 else "server_error"
        errors = _flatten_drf_detail(exc.detail)
        logger.info("api.request_rejected", view=view_name, kind=kind)
        return _envelope(kind, errors, exc.status_code)

    return None
