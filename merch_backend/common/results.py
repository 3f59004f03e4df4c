# common/results.py

"""
API RESULT ENVELOPE

Every mutating endpoint answers with:
    {"success": true,  "data": {...}}
    {"success": false, "error": {"code": "...", "message": "...", "details": {...}}}

Services raise typed DomainErrors; this module is the only place they are
translated into HTTP responses. Unexpected exceptions are logged with a
traceback and reported as an opaque internal error.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response

from common.exceptions import DomainError

logger = logging.getLogger("api")


def success(data=None, *, status_code: int = status.HTTP_200_OK) -> Response:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    return Response(body, status=status_code)


def failure(error: dict, *, status_code: int) -> Response:
    return Response({"success": False, "error": error}, status=status_code)


def invalid(errors) -> Response:
    """Input serializer errors."""
    return failure(
        {"code": "validation_error", "message": "Invalid input", "details": errors},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def _validation_details(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return {"non_field_errors": exc.messages}


def run_service(operation: str, fn, *args, serialize=None, status_code: int = status.HTTP_200_OK, **kwargs) -> Response:
    """
    Execute a service call and wrap its outcome in the result envelope.

    `serialize` turns the service return value into response data.
    """
    try:
        result = fn(*args, **kwargs)
    except DomainError as exc:
        logger.warning(
            "%s rejected: %s",
            operation,
            exc.message,
            extra={"operation": operation, "code": exc.code, "details": exc.details},
        )
        return failure(exc.to_dict(), status_code=exc.http_status)
    except DjangoValidationError as exc:
        logger.warning("%s failed validation", operation, extra={"operation": operation})
        return failure(
            {
                "code": "validation_error",
                "message": "; ".join(exc.messages),
                "details": _validation_details(exc),
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except Exception:
        logger.exception("%s failed unexpectedly", operation, extra={"operation": operation})
        return failure(
            {"code": "internal_error", "message": "An unexpected error occurred", "details": {}},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = serialize(result) if serialize else result
    return success(data, status_code=status_code)
