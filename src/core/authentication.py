"""DRF side of bearer-token authentication.

Tokens are verified once in ``JWTAuthMiddleware``; this authenticator only
hands the resulting user to DRF and names the scheme so that unauthenticated
API calls are answered with 401 rather than 403.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    www_authenticate_realm = "api"

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        user = getattr(getattr(request, "_request", None), "user", None)
        if user is None or not user.is_authenticated:
            return None
        return user, None

    def authenticate_header(self, request) -> str:
        return f'Bearer realm="{self.www_authenticate_realm}"'


__all__ = ["MiddlewareUserAuthentication"]
