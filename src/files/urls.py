"""URL patterns for file storage endpoints."""

from django.urls import path

from .views import FileDeleteView, FileUploadView, ImageUploadView

urlpatterns = [
    path("upload/", FileUploadView.as_view(), name="file-upload"),
    path("upload-image/", ImageUploadView.as_view(), name="image-upload"),
    path("", FileDeleteView.as_view(), name="file-delete"),
]
