"""Invalidate cached identities when role/permission assignments change."""

from django.conf import settings
from django.db.models.signals import m2m_changed, post_delete, post_save
from django.dispatch import receiver

from .cache import permission_cache
from .models import Permission, Role

_CHANGING = {"post_add", "post_remove", "post_clear"}


def _forget_users(instance, reverse: bool, pk_set) -> None:
    if not reverse:
        permission_cache.forget(instance.pk)
    elif pk_set:
        for user_id in pk_set:
            permission_cache.forget(user_id)
    else:
        permission_cache.forget()


def user_assignments_changed(sender, instance, action, reverse, pk_set, **kwargs):
    """User <-> Role and User <-> Permission edits only affect those users."""
    if action in _CHANGING:
        _forget_users(instance, reverse, pk_set)


@receiver(m2m_changed, sender=Role.permissions.through)
@receiver(m2m_changed, sender=Role.inherits.through)
def role_graph_changed(sender, action, **kwargs):
    """Role graph edits may affect any user holding the role."""
    if action in _CHANGING:
        permission_cache.forget()


@receiver(post_save, sender=Role)
@receiver(post_delete, sender=Role)
@receiver(post_save, sender=Permission)
@receiver(post_delete, sender=Permission)
def rbac_row_changed(sender, **kwargs):
    permission_cache.forget()


def user_row_changed(sender, instance, **kwargs):
    permission_cache.forget(instance.pk)


def connect_user_signals() -> None:
    """Wire handlers that need the concrete user model; called once the user app is ready."""
    from django.apps import apps

    user_model = apps.get_model(settings.AUTH_USER_MODEL)
    m2m_changed.connect(user_assignments_changed, sender=user_model.roles.through,
                        dispatch_uid="access_control.user_roles_changed")
    m2m_changed.connect(user_assignments_changed, sender=user_model.permissions.through,
                        dispatch_uid="access_control.user_permissions_changed")
    post_save.connect(user_row_changed, sender=user_model, dispatch_uid="access_control.user_saved")
    post_delete.connect(user_row_changed, sender=user_model, dispatch_uid="access_control.user_deleted")
