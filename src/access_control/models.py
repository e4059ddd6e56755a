"""RBAC models: Permission and Role."""

from django.core.exceptions import ValidationError
from django.db import models

DEFAULT_GUARD = "api"


class Permission(models.Model):
    """A named capability, unique within its guard."""

    name = models.CharField(max_length=125)
    guard_name = models.CharField(max_length=125, default=DEFAULT_GUARD)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["name", "guard_name"], name="permission_name_guard_unique"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Role(models.Model):
    """Represents a user's role in the RBAC system.

    A role grants its own permissions plus those of every role it inherits
    from. The inheritance graph must stay acyclic.
    """

    name = models.CharField(max_length=125)
    guard_name = models.CharField(max_length=125, default=DEFAULT_GUARD)
    permissions = models.ManyToManyField(Permission, related_name="roles", blank=True)
    inherits = models.ManyToManyField(
        "self", symmetrical=False, related_name="inherited_by", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["name", "guard_name"], name="role_name_guard_unique"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    def ancestors(self) -> set[int]:
        """Return ids of every role reachable through ``inherits``."""
        edges = inheritance_edges()
        return reachable_from(edges, edges.get(self.pk, ()))

    def inherit_from(self, *parents: "Role") -> None:
        """Add parent roles, refusing edges that would close a cycle."""
        for parent in parents:
            if parent.pk == self.pk or self.pk in parent.ancestors():
                raise ValidationError(
                    f"Role '{self.name}' cannot inherit from '{parent.name}': cycle detected."
                )
            self.inherits.add(parent)


def inheritance_edges(reverse: bool = False) -> dict[int, list[int]]:
    """Load the role inheritance graph as adjacency lists.

    Edges point from a role to the roles it inherits from, or the other way
    round when ``reverse`` is set.
    """
    edges: dict[int, list[int]] = {}
    through = Role.inherits.through
    for from_id, to_id in through.objects.values_list("from_role_id", "to_role_id"):
        if reverse:
            from_id, to_id = to_id, from_id
        edges.setdefault(from_id, []).append(to_id)
    return edges


def reachable_from(edges: dict[int, list[int]], start) -> set[int]:
    seen: set[int] = set()
    pending = list(start)
    while pending:
        role_id = pending.pop()
        if role_id in seen:
            continue
        seen.add(role_id)
        pending.extend(edges.get(role_id, ()))
    return seen


__all__ = ["Permission", "Role", "DEFAULT_GUARD", "inheritance_edges", "reachable_from"]
