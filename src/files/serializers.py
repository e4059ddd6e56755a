"""Upload and delete payloads for the file storage endpoints."""

import os

from django.conf import settings
from rest_framework import serializers

IMAGE_EXTENSIONS = ("jpeg", "png", "jpg", "gif", "svg")
FILE_TYPES = ("image", "document", "media")


def _clean_relative_path(value: str) -> str:
    """Reject absolute paths and parent traversal inside the storage root."""
    value = value.strip().strip("/")
    if not value or os.path.isabs(value) or ".." in value.split("/"):
        raise serializers.ValidationError("The path must be relative to the storage root.")
    return value


class FileUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    type = serializers.ChoiceField(choices=FILE_TYPES, required=False, default="general")
    folder = serializers.CharField(max_length=255, required=False, default="uploads")

    @staticmethod
    def validate_file(value):
        if value.size > settings.MAX_UPLOAD_SIZE:
            raise serializers.ValidationError("The file may not be greater than 10240 kilobytes.")
        return value

    @staticmethod
    def validate_folder(value):
        return _clean_relative_path(value)


class ImageUploadSerializer(serializers.Serializer):
    image = serializers.FileField()
    folder = serializers.CharField(max_length=255, required=False, default="images")

    @staticmethod
    def validate_image(value):
        extension = os.path.splitext(value.name)[1].lstrip(".").lower()
        if extension not in IMAGE_EXTENSIONS:
            raise serializers.ValidationError(
                f"The image must be a file of type: {', '.join(IMAGE_EXTENSIONS)}."
            )
        if value.size > settings.MAX_IMAGE_SIZE:
            raise serializers.ValidationError("The image may not be greater than 5120 kilobytes.")
        return value

    @staticmethod
    def validate_folder(value):
        return _clean_relative_path(value)


class FileDeleteSerializer(serializers.Serializer):
    path = serializers.CharField()

    @staticmethod
    def validate_path(value):
        return _clean_relative_path(value)


__all__ = ["FileDeleteSerializer", "FileUploadSerializer", "ImageUploadSerializer"]
