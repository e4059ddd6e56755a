"""Filter scopes and the listing allow-list for users."""

from django.db.models import Q

from access_control.identity import roles_granting
from querying.config import AllowedFilter, QueryConfig
from querying.exceptions import InvalidFilterArgument
from querying.scopes import parse_moment, parse_names

from .models import User


def created_after(value: str) -> Q:
    return Q(created_at__gte=parse_moment("created_after", value))


def created_before(value: str) -> Q:
    return Q(created_at__lte=parse_moment("created_before", value))


def has_role(value: str) -> Q:
    """Users directly assigned the named role."""
    names = parse_names("has_role", value)
    if len(names) != 1:
        raise InvalidFilterArgument("has_role", "Expected a single role name; use has_any_role for several.")
    return Q(id__in=User.objects.filter(roles__name=names[0]).values("id"))


def has_any_role(value: str) -> Q:
    names = parse_names("has_any_role", value)
    return Q(id__in=User.objects.filter(roles__name__in=names).values("id"))


def has_permission(value: str) -> Q:
    """Users reaching the permission directly or through (inherited) roles."""
    names = parse_names("has_permission", value)
    if len(names) != 1:
        raise InvalidFilterArgument("has_permission", "Expected a single permission name.")
    name = names[0]
    role_ids = roles_granting(name)
    holders = User.objects.filter(Q(permissions__name=name) | Q(roles__id__in=role_ids)).values("id")
    return Q(id__in=holders)


USER_QUERY = QueryConfig(
    filters={
        "id": AllowedFilter.exact("id"),
        "name": AllowedFilter.partial("name"),
        "email": AllowedFilter.partial("email"),
        "created_after": AllowedFilter.scope(created_after),
        "created_before": AllowedFilter.scope(created_before),
        "has_role": AllowedFilter.scope(has_role),
        "has_any_role": AllowedFilter.scope(has_any_role),
        "has_permission": AllowedFilter.scope(has_permission),
    },
    sorts={
        "name": "name",
        "email": "email",
        "created_at": "created_at",
        "updated_at": "updated_at",
        "latest": "created_at",
    },
    includes={"roles", "permissions", "roles.permissions"},
    default_sort=("-created_at",),
)

# Role-centred listing: roles loaded by default, alphabetical.
USERS_WITH_ROLES_QUERY = QueryConfig(
    filters={
        "role": AllowedFilter.scope(has_role),
        "roles": AllowedFilter.scope(has_any_role),
    },
    sorts={"name": "name", "email": "email", "created_at": "created_at"},
    includes={"roles", "permissions"},
    default_includes=("roles",),
    default_sort=("name",),
)

# Only includes apply to single-user reads.
USER_DETAIL_QUERY = QueryConfig(includes=USER_QUERY.includes)


__all__ = ["USER_QUERY", "USER_DETAIL_QUERY", "USERS_WITH_ROLES_QUERY"]
