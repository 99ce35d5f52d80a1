"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import Settings, get_settings
from shared.database import reset_client_cache
from modules.identity.models import Identity



@pytest.fixture(autouse=True)
def reset_caches():
    """Reset the settings and client caches before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    yield
    get_settings.cache_clear()
    reset_client_cache()


@pytest.fixture
def settings() -> Settings:
    """Settings that do not depend on the environment."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="test-anon-key",
        oauth_redirect_url="http://localhost:3000/auth/callback",
        password_reset_redirect_url="http://localhost:3000/reset",
        users_collection="users",
        default_query_limit=20,
        default_rating=5.0,
    )


@pytest.fixture
def identity() -> Identity:
    """Provide a consistent signed-in identity."""
    return Identity(id="uid-alice-0001", email="alice@example.com")


def _make_query_builder(data=None, error: Exception = None) -> MagicMock:
    """
    Build a PostgREST query builder mock.

    Every filter method returns the builder itself; ``execute`` is awaitable
    and returns ``data`` (or raises ``error``).
    """
    builder = MagicMock()
    for name in (
        "select", "insert", "upsert", "update", "delete",
        "eq", "neq", "lt", "lte", "gt", "gte",
        "in_", "contains", "is_", "order", "limit",
    ):
        getattr(builder, name).return_value = builder
    builder.not_ = builder
    if error is not None:
        builder.execute = AsyncMock(side_effect=error)
    else:
        builder.execute = AsyncMock(return_value=MagicMock(data=data))
    return builder


@pytest.fixture
def query_builder():
    """Factory for PostgREST query builder mocks."""
    return _make_query_builder


@pytest.fixture
def mock_db() -> MagicMock:
    """Supabase client mock with an empty query builder."""
    db = MagicMock()
    db.table.return_value = _make_query_builder([])
    db.remove_channel = AsyncMock()
    return db
