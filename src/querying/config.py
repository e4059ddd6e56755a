"""Declarative allow-lists describing what clients may filter, sort and include.

Each listing endpoint owns one :class:`QueryConfig`. Anything a client sends
that is not named here is ignored by the parser, so the config is the only
place where a column becomes reachable from a query string.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional

from django.db.models import Q

ScopePredicate = Callable[[str], Q]


class FilterKind(str, Enum):
    """How a filter value is turned into a predicate."""

    EXACT = "exact"
    PARTIAL = "partial"
    SCOPE = "scope"


@dataclass(frozen=True)
class AllowedFilter:
    """A single filter a client may use.

    ``exact`` and ``partial`` filters target a model column (or a ``__``
    lookup path); ``scope`` filters delegate to a predicate function that
    validates its own argument and returns a ``Q`` object.
    """

    kind: FilterKind
    column: Optional[str] = None
    predicate: Optional[ScopePredicate] = None

    @classmethod
    def exact(cls, column: str) -> "AllowedFilter":
        return cls(kind=FilterKind.EXACT, column=column)

    @classmethod
    def partial(cls, column: str) -> "AllowedFilter":
        return cls(kind=FilterKind.PARTIAL, column=column)

    @classmethod
    def scope(cls, predicate: ScopePredicate) -> "AllowedFilter":
        return cls(kind=FilterKind.SCOPE, predicate=predicate)


@dataclass(frozen=True)
class QueryConfig:
    """Allowed filters, sorts and includes for one listing endpoint.

    ``sorts`` maps the public sort key to the column it orders by, which lets
    a key such as ``author`` order by ``user__name``. ``default_sort`` uses
    the same ``-key`` notation as the query string and doubles as the
    tie-breaker for client supplied sorts.
    """

    filters: Mapping[str, AllowedFilter] = field(default_factory=dict)
    sorts: Mapping[str, str] = field(default_factory=dict)
    includes: frozenset = frozenset()
    default_sort: tuple = ("-created_at",)
    default_includes: tuple = ()
    default_page_size: Optional[int] = None
    max_page_size: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "includes", frozenset(self.includes))
        object.__setattr__(self, "default_sort", tuple(self.default_sort))
        object.__setattr__(self, "default_includes", tuple(self.default_includes))

    def allows_include(self, path: str) -> bool:
        """Return True when every dotted prefix of ``path`` is allowed.

        ``roles.permissions`` therefore needs both ``roles`` and
        ``roles.permissions`` in the allow-list.
        """
        segments = path.split(".")
        if not all(segments):
            return False
        return all(".".join(segments[: i + 1]) in self.includes for i in range(len(segments)))

    def sort_column(self, key: str) -> str:
        """Resolve a public sort key to its column, falling back to the key."""
        return self.sorts.get(key, key)


__all__ = ["AllowedFilter", "FilterKind", "QueryConfig", "ScopePredicate"]
