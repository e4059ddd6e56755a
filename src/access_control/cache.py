"""Per-process cache of resolved identities.

Backed by the ``permissions`` alias in ``CACHES`` (a local-memory cache, so
each worker keeps its own copy). Entries expire after
``settings.PERMISSION_CACHE_TTL`` seconds and are dropped eagerly by the
signal handlers in :mod:`access_control.signals` whenever role or
permission assignments change.
"""

from typing import Any, Optional

from django.conf import settings
from django.core.cache import caches

CACHE_ALIAS = "permissions"


class PermissionCache:
    """User id -> identity, on top of a Django cache alias."""

    def __init__(self, ttl: Optional[int] = None, alias: str = CACHE_ALIAS):
        self._ttl = ttl
        self._alias = alias

    @property
    def backend(self):
        return caches[self._alias]

    @property
    def ttl(self) -> int:
        if self._ttl is not None:
            return self._ttl
        return int(getattr(settings, "PERMISSION_CACHE_TTL", 300))

    @staticmethod
    def _key(user_id) -> str:
        return f"identity:{user_id}"

    def get(self, user_id) -> Optional[Any]:
        return self.backend.get(self._key(user_id))

    def set(self, user_id, value: Any) -> None:
        ttl = self.ttl
        if ttl <= 0:
            return
        self.backend.set(self._key(user_id), value, timeout=ttl)

    def forget(self, user_id=None) -> None:
        """Drop one user's entry, or everything when ``user_id`` is None."""
        if user_id is None:
            self.backend.clear()
        else:
            self.backend.delete(self._key(user_id))


permission_cache = PermissionCache()


__all__ = ["CACHE_ALIAS", "PermissionCache", "permission_cache"]
