"""Liveness and dependency health probes."""

import logging
import time
import uuid
from typing import Any, Callable

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import connection
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response

from .redis_client import get_redis_client
from .response import BaseAPIView, api_response, error_payload

logger = logging.getLogger(__name__)

SERVICE_NAME = "users-posts-api"
SERVICE_VERSION = "1.0.0"


def check_database() -> None:
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def check_cache() -> None:
    if not get_redis_client().ping():
        raise ConnectionError("Redis did not answer PING")


def check_storage() -> None:
    name = default_storage.save(f"health/{uuid.uuid4()}.txt", ContentFile(b"ok"))
    default_storage.delete(name)


CHECKS: dict[str, Callable[[], None]] = {
    "database": check_database,
    "cache": check_cache,
    "storage": check_storage,
}


def run_check(name: str, probe: Callable[[], None]) -> dict[str, Any]:
    """Run one probe and report ``healthy`` with its latency in milliseconds."""
    started = time.perf_counter()
    try:
        probe()
    except Exception as exc:  # any failure marks the dependency unhealthy
        logger.error("Health check %s failed: %s", name, exc)
        result: dict[str, Any] = {"healthy": False, "latency_ms": _elapsed_ms(started)}
        if settings.API_DEBUG:
            result["error"] = f"{type(exc).__name__}: {exc}"
        return result
    return {"healthy": True, "latency_ms": _elapsed_ms(started)}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _summary(state: str) -> dict[str, Any]:
    return {
        "status": state,
        "timestamp": timezone.now().isoformat(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


class HealthView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return api_response(_summary("healthy"), "Service is healthy")


class DetailedHealthView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        checks = {name: run_check(name, probe) for name, probe in CHECKS.items()}
        healthy = all(check["healthy"] for check in checks.values())
        payload = {**_summary("healthy" if healthy else "unhealthy"), "checks": checks}
        if healthy:
            return api_response(payload, "Service is healthy")
        return Response(error_payload("Service is unhealthy", payload), status=status.HTTP_503_SERVICE_UNAVAILABLE)


__all__ = ["DetailedHealthView", "HealthView", "run_check"]
