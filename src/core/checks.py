"""Startup checks for the project-level tunables in settings."""

from django.conf import settings
from django.core.checks import Error, Warning, register


@register()
def api_settings_are_sane(app_configs, **kwargs):
    errors = []
    default_size, max_size = settings.QUERY_DEFAULT_PAGE_SIZE, settings.QUERY_MAX_PAGE_SIZE
    if not 1 <= default_size <= max_size:
        errors.append(
            Error(
                f"QUERY_DEFAULT_PAGE_SIZE ({default_size}) must be between 1 and QUERY_MAX_PAGE_SIZE ({max_size}).",
                id="core.E001",
            )
        )
    if settings.ACCESS_TOKEN_LIFETIME_MINUTES <= 0 or settings.REFRESH_TOKEN_LIFETIME_HOURS <= 0:
        errors.append(Error("Token lifetimes must be positive.", id="core.E002"))
    missing = set(settings.POST_MODERATOR_ROLES) - set(settings.PRIVILEGED_ROLES)
    if missing:
        errors.append(
            Warning(
                f"Moderator roles {sorted(missing)} are not privileged and will not see post meta_data.",
                id="core.W001",
            )
        )
    return errors
