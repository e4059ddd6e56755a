"""Shared helpers for tests (role seeding, user and post creation, fake Redis)."""

from __future__ import annotations

from typing import Dict, Iterable, Optional
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils.text import slugify
from rest_framework.test import APIClient

from access_control.cache import permission_cache
from access_control.models import Role
from authentication.managers import hash_password
from authentication.services import TokenService
from posts.models import Post
from scripts.management.commands.seed_rbac import create_seed_permissions, create_seed_roles

User = get_user_model()

PASSWORD = "StrongPass123"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService and health checks."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)

    def ping(self) -> bool:
        return True


def seed_roles() -> dict[str, Role]:
    """Create the seeded permissions and roles (admin, editor, client, guest)."""
    permission_cache.forget()
    return create_seed_roles(create_seed_permissions())


def create_user(email: str, password: str = PASSWORD, roles: Iterable[Role] = (), name: Optional[str] = None, **extra):
    """Create a user with a bcrypt-hashed password for tests."""
    user = User.objects.create(
        email=email,
        name=name or email.split("@")[0].title(),
        password_hash=hash_password(password),
        **extra,
    )
    if roles:
        user.roles.add(*roles)
    return user


def create_post(user, title: str, **fields) -> Post:
    """Insert a post directly, bypassing the lifecycle rules."""
    fields.setdefault("slug", slugify(title))
    fields.setdefault("content", f"Content of {title}.")
    return Post.objects.create(user=user, title=title, **fields)


def client_for(user) -> APIClient:
    """APIClient carrying a freshly minted access token for ``user``."""
    access, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    return client


class APITestCase(TestCase):
    """TestCase with Redis replaced by ``FakeRedis`` and a cold permission cache."""

    @classmethod
    def setUpClass(cls):
        """Patch Redis clients to use in-memory fake for all tests."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("core.health.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after all tests complete."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    def setUp(self):
        # Rolled-back transactions do not fire invalidation signals.
        permission_cache.forget()
