"""Process-wide Redis connection used by the token blocklist and health probe."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Lazily build the client from ``REDIS_URL``.

    Short socket timeouts make an unreachable server surface as a
    ``redis.RedisError`` quickly instead of stalling the request.
    """
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _client


__all__ = ["get_redis_client"]
