"""User manager and the bcrypt helpers behind ``User.password_hash``."""

import bcrypt
from django.conf import settings
from django.contrib.auth.base_user import BaseUserManager


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode(), bcrypt.gensalt()).decode()


def verify_password(password_hash: str, raw_password: str) -> bool:
    if not password_hash or raw_password is None:
        return False
    try:
        return bcrypt.checkpw(raw_password.encode(), password_hash.encode())
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email: str, password: str | None = None, roles=(), **extra_fields):
        """Create a user named by ``extra_fields["name"]`` and attach ``roles``."""
        if not email:
            raise ValueError("The email must be set")
        if not password:
            raise ValueError("A password must be provided")
        if not extra_fields.get("name"):
            raise ValueError("The name must be set")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.password_hash = hash_password(password)
        user.save(using=self._db)
        if roles:
            user.roles.add(*roles)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        """User holding every privileged role, creating missing roles on the way."""
        from access_control.models import Role

        roles = [Role.objects.get_or_create(name=name)[0] for name in settings.PRIVILEGED_ROLES]
        extra_fields.setdefault("name", "Administrator")
        return self.create_user(email, password, roles=roles, **extra_fields)


__all__ = ["UserManager", "hash_password", "verify_password"]
