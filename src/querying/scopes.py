"""Argument parsing shared by scope filters.

Scope predicates receive the raw string from the query string and must reject
anything they cannot interpret with :class:`InvalidFilterArgument`.
"""

from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import InvalidFilterArgument

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_flag(filter_name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise InvalidFilterArgument(filter_name, "Expected a boolean value (true/false).")


def parse_moment(filter_name: str, value: str) -> datetime:
    """Parse an ISO date or datetime into an aware datetime.

    A bare date is read as midnight in the current time zone.
    """
    raw = value.strip()
    try:
        moment = parse_datetime(raw)
        if moment is None:
            day = parse_date(raw)
            moment = datetime.combine(day, time.min) if day else None
    except ValueError:
        moment = None
    if moment is None:
        raise InvalidFilterArgument(filter_name, "Expected an ISO 8601 date or datetime.")
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def parse_names(filter_name: str, value: str) -> list[str]:
    names = [part.strip() for part in value.split(",") if part.strip()]
    if not names:
        raise InvalidFilterArgument(filter_name, "Expected one or more comma separated names.")
    return names


__all__ = ["parse_flag", "parse_moment", "parse_names"]
