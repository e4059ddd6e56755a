"""Filter scopes and listing allow-lists for posts."""

from django.db.models import Q
from django.utils import timezone

from querying.config import AllowedFilter, QueryConfig
from querying.exceptions import InvalidFilterArgument
from querying.scopes import parse_flag

from .models import PostStatus


def effectively_published(now=None) -> Q:
    """Published posts whose ``published_at`` has already passed."""
    return Q(status=PostStatus.PUBLISHED, published_at__lte=now or timezone.now())


def search(value: str) -> Q:
    term = value.strip()
    if not term:
        raise InvalidFilterArgument("search", "Expected a non-empty search term.")
    return Q(title__icontains=term) | Q(content__icontains=term)


def published(value: str) -> Q:
    condition = effectively_published()
    return condition if parse_flag("published", value) else ~condition


def draft(value: str) -> Q:
    condition = Q(status=PostStatus.DRAFT)
    return condition if parse_flag("draft", value) else ~condition


_SORTS = {
    "title": "title",
    "status": "status",
    "published_at": "published_at",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "author": "user__name",
}

POST_QUERY = QueryConfig(
    filters={
        "title": AllowedFilter.partial("title"),
        "status": AllowedFilter.exact("status"),
        "user_id": AllowedFilter.exact("user_id"),
        "search": AllowedFilter.scope(search),
        "published": AllowedFilter.scope(published),
        "draft": AllowedFilter.scope(draft),
    },
    sorts=_SORTS,
    includes={"user"},
    default_sort=("-created_at",),
    default_includes=("user",),
)

MY_POSTS_QUERY = QueryConfig(
    filters={
        "title": AllowedFilter.partial("title"),
        "status": AllowedFilter.exact("status"),
        "search": AllowedFilter.scope(search),
    },
    sorts={key: column for key, column in _SORTS.items() if key != "author"},
    includes={"user"},
    default_sort=("-created_at",),
    default_includes=("user",),
)

PUBLISHED_QUERY = QueryConfig(
    filters={
        "title": AllowedFilter.partial("title"),
        "user_id": AllowedFilter.exact("user_id"),
        "search": AllowedFilter.scope(search),
    },
    sorts={key: _SORTS[key] for key in ("title", "published_at", "created_at", "author")},
    includes={"user"},
    default_sort=("-published_at",),
    default_includes=("user",),
)

# Single-post reads only honour includes.
POST_DETAIL_QUERY = QueryConfig(includes={"user"}, default_includes=("user",))


__all__ = ["MY_POSTS_QUERY", "POST_DETAIL_QUERY", "POST_QUERY", "PUBLISHED_QUERY", "effectively_published"]
