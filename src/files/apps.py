"""App configuration for file uploads."""

from django.apps import AppConfig


class FilesConfig(AppConfig):
    name = "files"
