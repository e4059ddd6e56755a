"""App configuration for user accounts and bearer tokens."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    name = "authentication"

    def ready(self) -> None:
        """Keep cached identities in step with edits to users and their grants."""
        from access_control.signals import connect_user_signals

        connect_user_signals()
