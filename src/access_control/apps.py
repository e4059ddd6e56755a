"""App configuration for roles, permissions and identity resolution."""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        """Role and permission signal receivers register on import."""
        from . import signals  # noqa: F401
