"""Table-driven representations gated by the caller's identity.

A :class:`Resource` lists its fields once. Each :class:`Field` names how to
read a value and a visibility predicate evaluated against the record and
the :class:`ProjectionContext`; fields whose predicate fails are left out of
the output entirely rather than rendered as ``null``.

Projection never queries the database: relations are only rendered when they
were eagerly loaded beforehand.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from django.core.exceptions import FieldDoesNotExist

from access_control.identity import IdentityContext

Visibility = Callable[[Any, "ProjectionContext"], bool]
Getter = Union[str, Callable[[Any, "ProjectionContext"], Any]]


@dataclass(frozen=True)
class ProjectionContext:
    identity: IdentityContext
    request: Any = None

    def build_url(self, path: str) -> str:
        if self.request is None:
            return path
        return self.request.build_absolute_uri(path)


def always(record, context) -> bool:
    return True


def relation_loaded(record, name: str) -> bool:
    """True when ``name`` was select_related/prefetched (or assigned) on ``record``."""
    if name in getattr(record, "_prefetched_objects_cache", {}):
        return True
    try:
        field = record._meta.get_field(name)
    except FieldDoesNotExist:
        return False
    if field.concrete and (field.many_to_one or field.one_to_one):
        return field.is_cached(record)
    return False


def when_loaded(name: str) -> Visibility:
    def predicate(record, context) -> bool:
        return relation_loaded(record, name)

    return predicate


def owner_or_roles(roles: Union[Iterable[str], Callable[[], Iterable[str]]],
                   owner_field: str = "user_id") -> Visibility:
    """Visible to the record's owner or to callers holding any of ``roles``.

    ``roles`` may be a callable returning the names, read on every check.
    """

    def predicate(record, context) -> bool:
        identity = context.identity
        if identity.owns(getattr(record, owner_field, None)):
            return True
        names = roles() if callable(roles) else roles
        return identity.has_role(*names)

    return predicate


@dataclass(frozen=True)
class Field:
    name: str
    source: Optional[Getter] = None
    visible: Visibility = always

    def read(self, record, context: ProjectionContext) -> Any:
        source = self.source if self.source is not None else self.name
        if callable(source):
            return source(record, context)
        return getattr(record, source)


class Section(Field):
    """A nested mapping whose own fields follow the same visibility rules."""

    def __init__(self, name: str, fields: Iterable[Field], visible: Visibility = always):
        super().__init__(name=name, source=None, visible=visible)
        object.__setattr__(self, "fields", tuple(fields))

    def read(self, record, context: ProjectionContext) -> dict[str, Any]:
        return project(self.fields, record, context)


def project(fields: Iterable[Field], record, context: ProjectionContext) -> dict[str, Any]:
    return {
        field.name: field.read(record, context)
        for field in fields
        if field.visible(record, context)
    }


class Resource:
    """Render model instances through a fixed field table."""

    fields: tuple = ()

    def __init__(self, context: ProjectionContext):
        self.context = context

    def to_representation(self, record) -> dict[str, Any]:
        return project(self.fields, record, self.context)

    def collection(self, records: Iterable[Any]) -> list[dict[str, Any]]:
        return [self.to_representation(record) for record in records]


def iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


__all__ = [
    "Field",
    "ProjectionContext",
    "Resource",
    "Section",
    "always",
    "iso",
    "owner_or_roles",
    "project",
    "relation_loaded",
    "when_loaded",
]
