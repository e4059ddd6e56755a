"""Post payloads with owner/role gated fields."""

from django.conf import settings
from django.urls import reverse

from authentication.resources import UserResource
from core.projection import Field, Resource, Section, iso, owner_or_roles, when_loaded

from .lifecycle import reading_time

# Settings are read per check so overrides apply without reloading.
owner_or_privileged = owner_or_roles(lambda: settings.PRIVILEGED_ROLES)


def _post_url(post, ctx) -> str:
    return ctx.build_url(reverse("post-detail", kwargs={"slug": post.slug}))


def _author(post, ctx) -> dict:
    return {"id": str(post.user.id), "name": post.user.name, "email": post.user.email}


def _published_date(post, ctx):
    return post.published_at.strftime("%b %d, %Y") if post.published_at else None


class PostResource(Resource):
    fields = (
        Field("id"),
        Field("title"),
        Field("slug"),
        Field("content"),
        Field("excerpt"),
        Field("status"),
        Field("featured_image"),
        Field("published_at", lambda post, ctx: iso(post.published_at)),
        Field("published_date", _published_date),
        Field("reading_time", lambda post, ctx: reading_time(post.content)),
        Field("is_published", lambda post, ctx: post.is_published()),
        Field("is_draft", lambda post, ctx: post.is_draft),
        Field("created_at", lambda post, ctx: iso(post.created_at)),
        Field("updated_at", lambda post, ctx: iso(post.updated_at)),
        Field("meta_data", visible=owner_or_privileged),
        Field("author", _author, when_loaded("user")),
        Field("user", lambda post, ctx: UserResource(ctx).to_representation(post.user), when_loaded("user")),
        Section(
            "urls",
            (
                Field("show", _post_url),
                Field("edit", _post_url, owner_or_privileged),
            ),
        ),
    )


__all__ = ["PostResource"]
