"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError, IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from querying.exceptions import InvalidFilterArgument, StorageError

from .response import error_payload

logger = logging.getLogger(__name__)

UNAUTHENTICATED_MESSAGE = "Unauthenticated."
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _validation_errors(payload: Any) -> dict[str, list[str]]:
    """Convert DRF validation detail into ``{field: [messages]}``."""

    if isinstance(payload, dict):
        return {
            str(field): [str(m) for m in messages] if isinstance(messages, list) else [str(messages)]
            for field, messages in payload.items()
        }
    if isinstance(payload, list):
        return {"non_field_errors": [str(m) for m in payload]}
    return {"non_field_errors": [str(payload)]}


def _detail(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return fallback


def _not_found_message(exc: Exception, context: dict[str, Any]) -> str:
    if isinstance(exc, NotFound) and str(exc.detail) != str(NotFound.default_detail):
        return str(exc.detail)
    view = context.get("view")
    queryset = getattr(view, "queryset", None)
    if queryset is not None:
        return f"{queryset.model.__name__} not found."
    return "Resource not found."


def internal_error_payload(exc: Exception) -> dict[str, Any]:
    if getattr(settings, "API_DEBUG", False):
        return error_payload(str(exc) or "Internal server error.", {"exception": type(exc).__name__})
    return error_payload("Internal server error.")


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap every API error in `{ "success": false, "message": ..., "errors": ... }`.

    - Uses DRF's default handler to produce the base response.
    - Validation failures become 422 with per-field message lists.
    - Auth failures always map to 401; detailed messages only with DEBUG_AUTH_ERRORS.
    - Unhandled exceptions become a 500 envelope, detailed only with API_DEBUG.
    """

    # Blocklist connectivity errors are security-critical and must fail-closed.
    if isinstance(exc, BlocklistUnavailable):
        return Response(
            error_payload("Authentication service unavailable."),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, InvalidFilterArgument):
        return Response(
            error_payload("Invalid filter argument.", {exc.filter_name: [exc.message]}),
            status=status.HTTP_400_BAD_REQUEST,
        )

    # Unique constraints lost to a concurrent write.
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error: %s", exc)
        return Response(
            error_payload("Validation failed.", ["The record conflicts with an existing one."]),
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    # Treat database errors as a temporary service outage and still respect the
    # global envelope format instead of returning Django's HTML 500 page.
    if isinstance(exc, (StorageError, DatabaseError)):
        logger.error("Storage failure: %s", exc)
        return Response(
            error_payload("Service temporarily unavailable."),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled API exception", exc_info=exc)
        return Response(internal_error_payload(exc), status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # Authentication failures raised from views are 401 as well.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED
        if getattr(settings, "DEBUG_AUTH_ERRORS", False):
            response.data = error_payload(UNAUTHENTICATED_MESSAGE, [_detail(response.data, UNAUTHENTICATED_MESSAGE)])
        else:
            response.data = error_payload(UNAUTHENTICATED_MESSAGE)
    elif isinstance(exc, ValidationError):
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        response.data = error_payload("Validation failed.", _validation_errors(response.data))
    elif isinstance(exc, PermissionDenied):
        response.data = error_payload(FORBIDDEN_MESSAGE)
    elif isinstance(exc, (Http404, NotFound)):
        response.data = error_payload(_not_found_message(exc, context))
    elif isinstance(exc, MethodNotAllowed):
        response.data = error_payload("Method not allowed.")
    elif response.status_code >= 400:
        response.data = error_payload(_detail(response.data, "Request could not be processed."))

    return response
