"""Response helpers and base classes for consistent API envelopes."""

from typing import Any, Optional

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from access_control.permissions import IdentityMixin

DEFAULT_SUCCESS_MESSAGE = "Success"


def api_response(data: Any = None, message: str = DEFAULT_SUCCESS_MESSAGE, status: int = 200) -> Response:
    """Return data wrapped in the standard envelope.

    All successful JSON responses should use this helper to ensure the
    `{ "success": true, "message": ..., "data": ... }` shape.
    """

    return Response({"success": True, "message": message, "data": data}, status=status)


def created_response(data: Any = None, message: str = "Created successfully") -> Response:
    return api_response(data, message, status=201)


def no_content_response() -> Response:
    # 204 responses must not include a body.
    return Response(status=204)


def error_payload(message: str, errors: Optional[Any] = None) -> dict[str, Any]:
    """Build the failure envelope; ``errors`` is omitted when empty."""
    payload: dict[str, Any] = {"success": False, "message": message}
    if errors:
        payload["errors"] = errors
    return payload


def error_response(message: str, status: int = 400, errors: Optional[Any] = None) -> Response:
    return Response(error_payload(message, errors), status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "success" in payload and "message" in payload


class EnvelopeMixin:
    """Mixin to wrap successful responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        """Ensure non-error responses include the `{success, message, data}` envelope."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = {"success": True, "message": DEFAULT_SUCCESS_MESSAGE, "data": response.data}
        # DRF's APIView/GenericViewSet provide finalize_response; mixin alone doesn't.
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, IdentityMixin, APIView):
    """APIView that ensures successful responses use the standard envelope."""


class BaseViewSet(EnvelopeMixin, IdentityMixin, GenericViewSet):
    """ViewSet variant that wraps successful responses in the envelope."""
