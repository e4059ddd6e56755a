"""Input validation for post writes."""

from django.utils import timezone
from rest_framework import serializers

from .lifecycle import RESERVED_SLUGS
from .models import Post, PostStatus


class PostWriteSerializer(serializers.Serializer):
    """Validate create/update payloads; persistence goes through ``posts.lifecycle``."""

    title = serializers.CharField(max_length=255)
    content = serializers.CharField()
    slug = serializers.SlugField(max_length=255, required=False, allow_blank=True)
    excerpt = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=PostStatus.choices, required=False)
    featured_image = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    meta_data = serializers.JSONField(required=False, allow_null=True)
    published_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate_slug(self, value):
        """Ensure slug is unique and not reserved, ignoring the post being updated."""
        if not value:
            return value
        if value in RESERVED_SLUGS:
            raise serializers.ValidationError("The slug is reserved.")
        qs = Post.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("The slug has already been taken.")
        return value

    @staticmethod
    def validate_excerpt(value):
        return value or ""

    @staticmethod
    def validate_meta_data(value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("The meta data must be an object.")
        return value

    def validate_published_at(self, value):
        if value is not None and self.instance is None and value < timezone.now():
            raise serializers.ValidationError("The published at must be a date after or equal to now.")
        return value

    def validate(self, attrs):
        """``published_at`` is only accepted for posts that are (or become) published."""
        if attrs.get("published_at") is not None:
            status = attrs.get("status") or getattr(self.instance, "status", PostStatus.DRAFT)
            if status != PostStatus.PUBLISHED:
                raise serializers.ValidationError(
                    {"published_at": ["The published at field is only allowed when status is published."]}
                )
        if "published_at" in attrs and attrs["published_at"] is None:
            # Clearing published_at is not a supported transition.
            attrs.pop("published_at")
        return attrs


__all__ = ["PostWriteSerializer"]
