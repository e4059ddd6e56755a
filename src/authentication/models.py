"""The API's user account.

Passwords are bcrypt hashes in ``password_hash``. Django's groups and
permissions are not used: roles and direct permissions come from
``access_control`` through the two many-to-many relations.
"""

import uuid
from typing import ClassVar, Optional

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from .managers import UserManager, hash_password, verify_password


class User(AbstractBaseUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=255, unique=True)
    password_hash = models.CharField(max_length=128)
    email_verified_at = models.DateTimeField(null=True, blank=True)
    roles = models.ManyToManyField("access_control.Role", related_name="users", blank=True)
    permissions = models.ManyToManyField("access_control.Permission", related_name="users", blank=True)
    is_active = models.BooleanField(default=True)
    # Bumped to revoke every token issued so far.
    token_version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = ["name"]

    objects = UserManager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        self.password_hash = "" if raw_password is None else hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        return verify_password(self.password_hash, raw_password)


__all__ = ["User"]
