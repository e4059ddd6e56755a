"""Per-request caller identity with a precomputed permission closure.

Views resolve an :class:`IdentityContext` once per request and hand it
explicitly to permission classes and resource projections; nothing below
reads the current user from global state.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from django.db.models import Q

from .cache import permission_cache
from .models import Permission, Role, inheritance_edges, reachable_from


@dataclass(frozen=True)
class IdentityContext:
    """Caller id plus directly assigned roles and the reachable permissions."""

    caller_id: Optional[Any] = None
    roles: frozenset = frozenset()
    permissions: frozenset = frozenset()

    @classmethod
    def anonymous(cls) -> "IdentityContext":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.caller_id is not None

    def has_role(self, *names: str) -> bool:
        """True when any of ``names`` is directly assigned to the caller."""
        return any(name in self.roles for name in names)

    def has_permission(self, name: str) -> bool:
        return name in self.permissions

    def owns(self, owner_id: Any) -> bool:
        return self.caller_id is not None and owner_id is not None and str(owner_id) == str(self.caller_id)


def resolve_identity(user) -> IdentityContext:
    """Return the (cached) identity for ``user`` or an anonymous identity."""
    if user is None or not getattr(user, "is_authenticated", False):
        return IdentityContext.anonymous()

    cached = permission_cache.get(user.pk)
    if cached is not None:
        return cached

    identity = build_identity(user)
    permission_cache.set(user.pk, identity)
    return identity


def build_identity(user) -> IdentityContext:
    """Compute role names and the transitive permission set from the store."""
    assigned = list(user.roles.values_list("id", "name"))
    role_ids = {role_id for role_id, _ in assigned}
    reachable = expand_roles(role_ids)

    permissions = set(
        Permission.objects.filter(Q(roles__id__in=reachable) | Q(users=user))
        .values_list("name", flat=True)
        .distinct()
    )
    return IdentityContext(
        caller_id=user.pk,
        roles=frozenset(name for _, name in assigned),
        permissions=frozenset(permissions),
    )


def expand_roles(role_ids: Iterable[int]) -> set[int]:
    """Return ``role_ids`` plus every role they inherit from, transitively."""
    return reachable_from(inheritance_edges(), role_ids)


def roles_granting(permission_name: str) -> set[int]:
    """Return ids of roles that reach ``permission_name`` directly or by inheritance."""
    direct = Role.objects.filter(permissions__name=permission_name).values_list("id", flat=True)
    return reachable_from(inheritance_edges(reverse=True), direct)


__all__ = ["IdentityContext", "resolve_identity", "build_identity", "expand_roles", "roles_granting"]
