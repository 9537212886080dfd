"""Shared helpers for tests (users, teams, articles, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from access_control.resolver import ArticleStatus
from articles import services
from authentication.managers import UserManager
from authentication.services import TokenService
from teams.models import Team, TeamMember

User = get_user_model()


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False):
        """Mimic Redis SET; with ``nx`` returns None when the key already exists."""
        if nx and key in self._store:
            return None
        self._store[key] = value
        return True

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


class FakeRedisMixin:
    """Patch the Redis client with ``FakeRedis`` for a whole TestCase class."""

    fake_redis: FakeRedis

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()


def create_user(email: str, password: str = "Password123", team: Team | None = None, **extra):
    """Create a user with a bcrypt-hashed password, optionally joining ``team``."""

    user = User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        **extra,
    )
    if team is not None:
        TeamMember.objects.create(user=user, team=team, role=TeamMember.Role.MEMBER)
    return user


def create_article(owner, title: str, status: str = ArticleStatus.DRAFT, team: Team | None = None, **extra):
    """Create an article through the service layer with sensible defaults."""

    tags = extra.pop("tags", None)
    data = {
        "title": title,
        "slug": extra.pop("slug", services.generate_slug(title)),
        "content": extra.pop("content", f"Body of {title}"),
        "status": status,
    }
    data.update(extra)
    return services.create_article(owner, data, tags=tags, team=team)


def auth_client(user) -> APIClient:
    """Return an APIClient authenticated with a fresh access token."""

    token, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client
