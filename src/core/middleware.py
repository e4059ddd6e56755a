"""Attach the bearer-token user to every request before views run."""

from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.services import BlocklistUnavailable, TokenService, bearer_token

from .response import error_payload


class JWTAuthMiddleware(MiddlewareMixin):
    """Requests without a bearer token stay anonymous; a bad token is a 401.

    Per-route guards decide what anonymous callers may do, so a missing token
    never fails here.
    """

    def process_request(self, request):  # type: ignore[override]
        request.user = AnonymousUser()
        token = bearer_token(request)
        if token is None:
            return None
        try:
            request.user = TokenService.authenticate(token)
        except AuthenticationFailed:
            return JsonResponse(
                error_payload(
                    "Unauthenticated.",
                    ["The bearer token is invalid, expired or revoked, or its user is inactive."],
                ),
                status=status.HTTP_401_UNAUTHORIZED,
            )
        except BlocklistUnavailable:
            return JsonResponse(
                error_payload("Authentication service unavailable."),
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return None


__all__ = ["JWTAuthMiddleware"]
