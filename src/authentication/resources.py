"""Representations of users, their roles and permissions."""

from core.projection import Field, Resource, iso, project, when_loaded


def _permission_list(permissions) -> list[dict]:
    return [
        {"id": permission.id, "name": permission.name, "guard_name": permission.guard_name}
        for permission in permissions
    ]


ROLE_FIELDS = (
    Field("id"),
    Field("name"),
    Field("guard_name"),
    Field("permissions", lambda role, ctx: _permission_list(role.permissions.all()), when_loaded("permissions")),
)


class UserResource(Resource):
    """User payload; ``roles`` and ``permissions`` appear only when included."""

    fields = (
        Field("id", lambda user, ctx: str(user.id)),
        Field("name"),
        Field("email"),
        Field("email_verified_at", lambda user, ctx: iso(user.email_verified_at)),
        Field("created_at", lambda user, ctx: iso(user.created_at)),
        Field("updated_at", lambda user, ctx: iso(user.updated_at)),
        Field(
            "roles",
            lambda user, ctx: [project(ROLE_FIELDS, role, ctx) for role in user.roles.all()],
            when_loaded("roles"),
        ),
        Field("permissions", lambda user, ctx: _permission_list(user.permissions.all()), when_loaded("permissions")),
    )


__all__ = ["UserResource"]
