"""Upload files and images to the default storage, or delete them by path."""

import logging
import os
import uuid

from django.core.files.storage import default_storage
from django.utils import timezone
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from access_control.permissions import IsAuthenticatedCaller
from core.response import BaseAPIView, api_response, created_response

from .serializers import FileDeleteSerializer, FileUploadSerializer, ImageUploadSerializer

logger = logging.getLogger(__name__)


def _store(upload, directory: str) -> dict:
    """Save ``upload`` under ``directory`` with a random name and describe it."""
    extension = os.path.splitext(upload.name)[1].lower()
    filename = f"{uuid.uuid4()}{extension}"
    path = default_storage.save(f"{directory}/{filename}", upload)
    logger.info("Stored upload %s (%d bytes)", path, upload.size)
    return {
        "filename": filename,
        "original_name": upload.name,
        "path": path,
        "url": default_storage.url(path),
        "size": upload.size,
        "mime_type": getattr(upload, "content_type", None),
    }


class FileUploadView(BaseAPIView):
    permission_classes = [IsAuthenticatedCaller]
    parser_classes = [MultiPartParser, FormParser]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = FileUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        stored = _store(data["file"], f"{data['folder']}/{data['type']}")
        return created_response(stored, "File uploaded successfully")


class ImageUploadView(BaseAPIView):
    permission_classes = [IsAuthenticatedCaller]
    parser_classes = [MultiPartParser, FormParser]

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        stored = _store(data["image"], f"{data['folder']}/{timezone.now():%Y/%m/%d}")
        return created_response(stored, "Image uploaded successfully")


class FileDeleteView(BaseAPIView):
    permission_classes = [IsAuthenticatedCaller]
    parser_classes = [JSONParser, FormParser]

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        serializer = FileDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        path = serializer.validated_data["path"]
        if not default_storage.exists(path):
            raise NotFound("File not found.")
        default_storage.delete(path)
        logger.info("Deleted stored file %s", path)
        return api_response(None, "File deleted successfully")


__all__ = ["FileDeleteView", "FileUploadView", "ImageUploadView"]
