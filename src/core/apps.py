"""App configuration for the project-wide plumbing in ``core``."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Settings, routing, the response envelope and the health probes."""

    name = "core"

    def ready(self) -> None:
        from . import checks  # noqa: F401
