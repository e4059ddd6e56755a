"""App configuration for the query composition layer."""

from django.apps import AppConfig


class QueryingConfig(AppConfig):
    """Querying parses client query strings and executes them against models."""

    name = "querying"

    def ready(self) -> None:
        """Register system checks when the app is loaded."""
        from . import checks  # noqa: F401
