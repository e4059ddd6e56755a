"""Apply a :class:`QuerySpec` to a Django QuerySet and return one page."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import F, QuerySet
from django.db.models.constants import LOOKUP_SEP

from .config import FilterKind, QueryConfig
from .exceptions import StorageError
from .parser import QuerySpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 15

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    def meta(self) -> dict[str, int]:
        return {
            "total_count": self.total_count,
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


class QueryExecutor:
    """Filter, order, eager-load and paginate a base QuerySet.

    The base QuerySet carries whatever restrictions the caller needs before
    client input is considered (for example "only my posts"); the executor
    only ever narrows it further.
    """

    def __init__(self, config: QueryConfig):
        self.config = config

    def execute(self, spec: QuerySpec, queryset: QuerySet) -> Page:
        queryset = self.apply_filters(queryset, spec)
        queryset = self.apply_sorts(queryset, spec)
        queryset = self.apply_includes(queryset, spec)
        return self.paginate(queryset, spec)

    def apply_filters(self, queryset: QuerySet, spec: QuerySpec) -> QuerySet:
        for clause in spec.filters:
            allowed = self.config.filters[clause.key]
            if clause.kind is FilterKind.EXACT:
                queryset = self._filter_exact(queryset, allowed.column, clause.value)
            elif clause.kind is FilterKind.PARTIAL:
                queryset = queryset.filter(**{f"{allowed.column}__icontains": clause.value})
            else:
                queryset = queryset.filter(allowed.predicate(clause.value))
        return queryset

    def apply_sorts(self, queryset: QuerySet, spec: QuerySpec) -> QuerySet:
        ordering = []
        used = set()
        keys = [(c.key, c.descending) for c in spec.sorts]
        keys += [(token.lstrip("-"), token.startswith("-")) for token in self.config.default_sort]
        for key, descending in keys:
            column = self.config.sort_column(key)
            if column in used:
                continue
            used.add(column)
            expression = F(column)
            ordering.append(
                expression.desc(nulls_last=True) if descending else expression.asc(nulls_last=True)
            )
        ordering.append(F("pk").asc())
        return queryset.order_by(*ordering)

    def apply_includes(self, queryset: QuerySet, spec: QuerySpec) -> QuerySet:
        for path in sorted(spec.includes):
            segments = path.split(".")
            lookup = LOOKUP_SEP.join(segments)
            if _is_forward_chain(queryset.model, segments):
                queryset = queryset.select_related(lookup)
            else:
                queryset = queryset.prefetch_related(lookup)
        return queryset

    @staticmethod
    def paginate(queryset: QuerySet, spec: QuerySpec) -> Page:
        offset = (spec.page_number - 1) * spec.page_size
        try:
            total = queryset.count()
            # The row set may change between the count and the slice; the
            # resulting skew is tolerated.
            items = list(queryset[offset : offset + spec.page_size]) if offset < total else []
        except DatabaseError as exc:
            logger.error("Query on %s failed: %s", queryset.model.__name__, exc)
            raise StorageError("Storage backend failed while executing query") from exc
        return Page(items=items, total_count=total, page_number=spec.page_number, page_size=spec.page_size)

    @staticmethod
    def _filter_exact(queryset: QuerySet, column: str, raw: str) -> QuerySet:
        values = [part.strip() for part in raw.split(",") if part.strip()]
        try:
            values = [_coerce(queryset.model, column, value) for value in values]
        except (ValidationError, ValueError, TypeError):
            # No row can equal a value the column cannot hold.
            return queryset.none()
        if len(values) == 1:
            return queryset.filter(**{column: values[0]})
        return queryset.filter(**{f"{column}__in": values})


def _coerce(model, column: str, value: str) -> Any:
    if LOOKUP_SEP in column:
        return value
    return model._meta.get_field(column).to_python(value)


def _is_forward_chain(model, segments: list[str]) -> bool:
    """True when every segment is a forward FK / one-to-one (joinable)."""
    for segment in segments:
        relation = model._meta.get_field(segment)
        if not (relation.concrete and (relation.many_to_one or relation.one_to_one)):
            return False
        model = relation.related_model
    return True


__all__ = ["Page", "QueryExecutor"]
