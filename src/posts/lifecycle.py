"""Post state transitions and derived fields.

Slug and excerpt derivation run as explicit transforms before a post is
saved; status only changes through :func:`publish`, :func:`archive` and
:func:`revert_to_draft`, so ``published_at`` is set exactly once.
"""

import logging
import math
import re
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone
from django.utils.html import strip_tags
from django.utils.text import slugify

from .models import Post, PostStatus

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 150
WORDS_PER_MINUTE = 200
FALLBACK_SLUG = "post"
# Collection routes under /posts/ that a slug must not shadow.
RESERVED_SLUGS = frozenset({"published", "my-posts"})

_WORD = re.compile(r"[A-Za-z'-]+")
_WHITESPACE = re.compile(r"\s+")


def strip_markup(content: str) -> str:
    return strip_tags(content or "")


def word_count(content: str) -> int:
    return len(_WORD.findall(strip_markup(content)))


def reading_time(content: str) -> int:
    """Minutes to read at 200 words per minute, never below one."""
    return max(1, math.ceil(word_count(content) / WORDS_PER_MINUTE))


def derive_excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    """First ``length`` characters of the plain text, cut at a word boundary."""
    text = _WHITESPACE.sub(" ", strip_markup(content)).strip()
    if len(text) <= length:
        return text
    cut = text[:length]
    if not text[length].isspace() and " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip() + "..."


def derive_slug(title: str, exclude_pk: Optional[int] = None) -> str:
    """Slugify ``title`` and suffix ``-2``, ``-3`` ... until it is unused and not reserved."""
    base = slugify(title or "")[:240] or FALLBACK_SLUG
    taken = Post.objects.filter(slug__startswith=base)
    if exclude_pk is not None:
        taken = taken.exclude(pk=exclude_pk)
    existing = set(taken.values_list("slug", flat=True))
    if base not in existing and base not in RESERVED_SLUGS:
        return base
    suffix = 2
    while f"{base}-{suffix}" in existing:
        suffix += 1
    return f"{base}-{suffix}"


def prepare_for_create(data: dict[str, Any]) -> dict[str, Any]:
    """Fill in slug and excerpt when the payload leaves them empty."""
    prepared = dict(data)
    if not prepared.get("slug"):
        prepared["slug"] = derive_slug(prepared.get("title", ""))
    if not prepared.get("excerpt"):
        prepared["excerpt"] = derive_excerpt(prepared.get("content", ""))
    return prepared


def prepare_for_update(post: Post, changes: dict[str, Any]) -> dict[str, Any]:
    """Re-derive the slug only when the title changes and no slug is set."""
    prepared = dict(changes)
    title_changed = "title" in prepared and prepared["title"] != post.title
    slug = prepared.get("slug", post.slug)
    if title_changed and not slug:
        prepared["slug"] = derive_slug(prepared["title"], exclude_pk=post.pk)
    elif "slug" in prepared and not prepared["slug"]:
        # An explicit empty slug keeps the stored one.
        prepared.pop("slug")
    return prepared


def publish(post: Post, now=None) -> Post:
    """Mark published; an existing ``published_at`` is kept."""
    if post.status == PostStatus.PUBLISHED and post.published_at is not None:
        return post
    post.status = PostStatus.PUBLISHED
    if post.published_at is None:
        post.published_at = now or timezone.now()
    post.save(update_fields=["status", "published_at", "updated_at"])
    logger.info("Post %s published at %s", post.slug, post.published_at.isoformat())
    return post


def archive(post: Post) -> Post:
    if post.status != PostStatus.ARCHIVED:
        post.status = PostStatus.ARCHIVED
        post.save(update_fields=["status", "updated_at"])
        logger.info("Post %s archived", post.slug)
    return post


def revert_to_draft(post: Post) -> Post:
    if post.status != PostStatus.DRAFT:
        post.status = PostStatus.DRAFT
        post.save(update_fields=["status", "updated_at"])
        logger.info("Post %s moved back to draft", post.slug)
    return post


TRANSITIONS = {
    PostStatus.PUBLISHED: publish,
    PostStatus.ARCHIVED: archive,
    PostStatus.DRAFT: revert_to_draft,
}


def transition(post: Post, status: str) -> Post:
    return TRANSITIONS[PostStatus(status)](post)


def create_post(user, data: dict[str, Any]) -> Post:
    """Persist a new draft, then route the requested status through its transition."""
    fields = prepare_for_create(data)
    status = fields.pop("status", PostStatus.DRAFT)
    with transaction.atomic():
        post = Post.objects.create(user=user, status=PostStatus.DRAFT, **fields)
        if status != PostStatus.DRAFT:
            transition(post, status)
    return post


def update_post(post: Post, data: dict[str, Any]) -> Post:
    fields = prepare_for_update(post, data)
    status = fields.pop("status", None)
    with transaction.atomic():
        for name, value in fields.items():
            setattr(post, name, value)
        post.save()
        if status is not None and status != post.status:
            transition(post, status)
    return post


__all__ = [
    "RESERVED_SLUGS",
    "archive",
    "create_post",
    "derive_excerpt",
    "derive_slug",
    "prepare_for_create",
    "prepare_for_update",
    "publish",
    "reading_time",
    "revert_to_draft",
    "transition",
    "update_post",
    "word_count",
]
