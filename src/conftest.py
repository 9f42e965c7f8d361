"""
Project-wide fixtures: Celery eager mode, throttle state and staff users.
"""

import typing as t

import pytest
from django.contrib.auth.models import User
from django.core.cache import cache
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously.

    This ensures that Celery tasks run immediately in the same process,
    allowing tests to verify their side effects without async complications.
    """
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def clear_throttle_cache() -> t.Iterator[None]:
    """Throttle counters live in the cache. Start every test with a clean slate."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def superuser(django_user_model: t.Type[User]) -> User:
    return django_user_model.objects.create_superuser(
        username="superuser", email="superuser@example.com", password="pass"
    )


@pytest.fixture
def regular_user(django_user_model: t.Type[User]) -> User:
    return django_user_model.objects.create_user(username="regular", email="regular@example.com", password="pass")


@pytest.fixture
def superuser_client(superuser: User) -> Client:
    refresh = RefreshToken.for_user(superuser)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def regular_client(regular_user: User) -> Client:
    refresh = RefreshToken.for_user(regular_user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]
