"""Parse decoded query strings into a validated :class:`QuerySpec`.

Accepted shapes::

    filter[name]=john          (or a nested ``{"filter": {"name": "john"}}``)
    sort=-published_at,title
    include=roles,roles.permissions
    page[size]=10&page[number]=2    (or per_page=10&page=2)

Keys outside the endpoint's :class:`~querying.config.QueryConfig` are dropped
without error, and unusable pagination values fall back to the defaults.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings

from .config import FilterKind, QueryConfig

logger = logging.getLogger(__name__)

_BRACKET_KEY = re.compile(r"^(?P<group>[a-z_]+)\[(?P<name>[^\[\]]+)\]$")


@dataclass(frozen=True)
class FilterClause:
    key: str
    kind: FilterKind
    value: str


@dataclass(frozen=True)
class SortClause:
    key: str
    descending: bool = False


@dataclass(frozen=True)
class QuerySpec:
    """Typed, allow-listed description of one listing request."""

    filters: tuple = ()
    sorts: tuple = ()
    includes: frozenset = frozenset()
    page_size: int = 15
    page_number: int = 1


def query_params_to_dict(query_dict) -> dict[str, Any]:
    """Flatten a Django ``QueryDict`` keeping repeated keys as lists."""
    return {key: values if len(values) > 1 else values[0] for key, values in query_dict.lists()}


def parse_query(params: Mapping[str, Any], config: QueryConfig) -> QuerySpec:
    """Build a :class:`QuerySpec` from raw parameters and an allow-list."""
    groups = _group_params(params)
    page = groups.get("page", {})

    default_size = config.default_page_size or settings.QUERY_DEFAULT_PAGE_SIZE
    max_size = config.max_page_size or settings.QUERY_MAX_PAGE_SIZE

    flat_page = params.get("page")
    raw_size = page.get("size", params.get("per_page"))
    raw_number = page.get("number", None if isinstance(flat_page, Mapping) else flat_page)

    return QuerySpec(
        filters=_parse_filters(groups.get("filter", {}), config),
        sorts=_parse_sorts(params.get("sort"), config),
        includes=_parse_includes(params.get("include"), config),
        page_size=min(_positive_int(raw_size, default_size), max_size),
        page_number=_positive_int(raw_number, 1),
    )


def _group_params(params: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Collect ``group[name]`` keys and nested mappings into ``{group: {name: value}}``."""
    groups: dict[str, dict[str, Any]] = {}
    for key, value in params.items():
        if isinstance(value, Mapping):
            groups.setdefault(key, {}).update(value)
            continue
        match = _BRACKET_KEY.match(key)
        if match:
            groups.setdefault(match.group("group"), {})[match.group("name")] = value
    return groups


def _last(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if value is None:
        return None
    return str(value)


def _parse_filters(raw_filters: Mapping[str, Any], config: QueryConfig) -> tuple:
    clauses = []
    for key, raw_value in raw_filters.items():
        allowed = config.filters.get(key)
        if allowed is None:
            logger.debug("Ignoring filter %r: not allowed", key)
            continue
        value = _last(raw_value)
        if value is None or value.strip() == "":
            continue
        clauses.append(FilterClause(key=key, kind=allowed.kind, value=value.strip()))
    return tuple(clauses)


def _parse_sorts(raw_sort: Any, config: QueryConfig) -> tuple:
    clauses = []
    seen = set()
    for token in _split_csv(_last(raw_sort)):
        descending = token.startswith("-")
        key = token[1:] if descending else token
        if key not in config.sorts:
            logger.debug("Ignoring sort %r: not allowed", key)
            continue
        if key in seen:
            continue
        seen.add(key)
        clauses.append(SortClause(key=key, descending=descending))
    return tuple(clauses)


def _parse_includes(raw_include: Any, config: QueryConfig) -> frozenset:
    paths = set(config.default_includes)
    for path in _split_csv(_last(raw_include)):
        if config.allows_include(path):
            paths.add(path)
        else:
            logger.debug("Ignoring include %r: not allowed", path)
    return frozenset(paths)


def _split_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _positive_int(raw: Any, default: int) -> int:
    raw = _last(raw)
    try:
        number = int(raw.strip())
    except (AttributeError, TypeError, ValueError):
        return default
    return number if number >= 1 else default


__all__ = ["FilterClause", "SortClause", "QuerySpec", "parse_query", "query_params_to_dict"]
