"""Blog post owned by a user."""

from django.conf import settings
from django.db import models
from django.utils import timezone


class PostStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"


class Post(models.Model):
    """A post moves between draft, published and archived via ``posts.lifecycle``."""

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    content = models.TextField()
    excerpt = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=PostStatus.choices, default=PostStatus.DRAFT)
    featured_image = models.CharField(max_length=255, null=True, blank=True)
    meta_data = models.JSONField(null=True, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="posts")
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "published_at"], name="post_status_published_idx"),
            models.Index(fields=["user", "status"], name="post_user_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title

    def is_published(self, now=None) -> bool:
        """Published and already effective; future-dated posts are scheduled."""
        now = now or timezone.now()
        return (
            self.status == PostStatus.PUBLISHED
            and self.published_at is not None
            and self.published_at <= now
        )

    @property
    def is_draft(self) -> bool:
        return self.status == PostStatus.DRAFT


__all__ = ["Post", "PostStatus"]
