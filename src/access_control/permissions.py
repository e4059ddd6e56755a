"""DRF permission classes driven by the request's IdentityContext."""

from django.conf import settings
from rest_framework import permissions

from .identity import IdentityContext, resolve_identity


class IdentityMixin:
    """Resolve the caller identity once per request and expose it to collaborators."""

    _identity: IdentityContext | None = None

    def get_identity(self) -> IdentityContext:
        if self._identity is None:
            self._identity = resolve_identity(getattr(self.request, "user", None))
        return self._identity


def _identity_for(view) -> IdentityContext:
    getter = getattr(view, "get_identity", None)
    if getter is None:
        return IdentityContext.anonymous()
    return getter()


class IsAuthenticatedCaller(permissions.BasePermission):
    """Reject requests without a resolved caller (surfaced as 401)."""

    def has_permission(self, request, view) -> bool:
        return _identity_for(view).is_authenticated


class OwnerOrRolePermission(permissions.BasePermission):
    """Allow writes on an object only to its owner or to moderator roles.

    Views declare ``owner_field`` (the attribute holding the owner id, default
    ``user_id``) and may override ``moderator_roles``; otherwise
    ``settings.POST_MODERATOR_ROLES`` applies. Safe methods are not
    restricted here.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_object_permission(self, request, view, obj) -> bool:
        if request.method in permissions.SAFE_METHODS:
            return True
        identity = _identity_for(view)
        owner_id = getattr(obj, getattr(view, "owner_field", "user_id"), None)
        if identity.owns(owner_id):
            return True
        roles = getattr(view, "moderator_roles", None) or settings.POST_MODERATOR_ROLES
        return identity.has_role(*roles)


class RequiresPermission(permissions.BasePermission):
    """Require the permission named by ``view.required_permissions[action]``.

    Actions missing from the mapping are allowed; ``self_service_actions``
    additionally let callers act on their own record (``obj.pk`` equal to the
    caller id) without the permission.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        needed = getattr(view, "required_permissions", {}).get(getattr(view, "action", None))
        if needed is None or view.action in getattr(view, "self_service_actions", ()):
            return True
        return _identity_for(view).has_permission(needed)

    def has_object_permission(self, request, view, obj) -> bool:
        needed = getattr(view, "required_permissions", {}).get(getattr(view, "action", None))
        if needed is None:
            return True
        identity = _identity_for(view)
        if view.action in getattr(view, "self_service_actions", ()) and identity.owns(obj.pk):
            return True
        return identity.has_permission(needed)


__all__ = ["IdentityMixin", "IsAuthenticatedCaller", "OwnerOrRolePermission", "RequiresPermission"]
