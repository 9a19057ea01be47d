"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
builders for Supabase-shaped auth objects and a MagicMock Supabase client
whose table/storage chains can be configured per test.
"""

import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from modules.auth.models import AuthSession, UserProfile
from shared.config import Settings
from shared.database import reset_client_cache


TEST_USER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
TEST_EMAIL = "a@b.com"


class FakeAPIError(Exception):
    """Stand-in for postgrest's APIError: a message plus a SQLSTATE code."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


def make_backend_user(
    user_id: str = TEST_USER_ID,
    email: str = TEST_EMAIL,
    confirmed: bool = True,
) -> SimpleNamespace:
    """Build an object shaped like a gotrue User."""
    return SimpleNamespace(
        id=user_id,
        email=email,
        email_confirmed_at=datetime(2025, 10, 22, tzinfo=timezone.utc) if confirmed else None,
    )


def make_backend_session(
    user_id: str = TEST_USER_ID,
    email: str = TEST_EMAIL,
    confirmed: bool = True,
) -> SimpleNamespace:
    """Build an object shaped like a gotrue Session."""
    return SimpleNamespace(
        user=make_backend_user(user_id, email, confirmed),
        access_token="access-token",
        refresh_token="refresh-token",
        expires_at=1893456000,
    )


def make_auth_response(
    user_id: str = TEST_USER_ID,
    email: str = TEST_EMAIL,
    confirmed: bool = True,
) -> SimpleNamespace:
    """Build an object shaped like a gotrue AuthResponse."""
    session = make_backend_session(user_id, email, confirmed)
    return SimpleNamespace(user=session.user, session=session)


def make_profile_row(
    user_id: str = TEST_USER_ID,
    email: str = TEST_EMAIL,
    **overrides,
) -> dict:
    """Build a profiles table row as PostgREST returns it."""
    row = {
        "id": user_id,
        "email": email,
        "full_name": None,
        "date_of_birth": None,
        "phone_number": None,
        "address": None,
        "profile_image_url": None,
        "user_type": "tenant",
        "created_at": "2025-10-22T09:30:00+00:00",
    }
    row.update(overrides)
    return row


def make_profile(user_id: str = TEST_USER_ID, email: str = TEST_EMAIL, **overrides) -> UserProfile:
    """Build a parsed profile."""
    return UserProfile.model_validate(make_profile_row(user_id, email, **overrides))


def set_select_rows(client: MagicMock, rows: list[dict]) -> None:
    """Make table(...).select(...).eq(...).execute() return these rows."""
    client.table.return_value.select.return_value.eq.return_value.execute.return_value = (
        MagicMock(data=rows)
    )


@pytest.fixture(autouse=True)
def reset_client_singleton():
    """Reset the cached Supabase client before and after each test."""
    reset_client_cache()
    yield
    reset_client_cache()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_anon_key="anon",
        google_api_key="",
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """
    Supabase client mock with a confirmed session and one profile row.

    Tests override individual chains as needed.
    """
    client = MagicMock()
    client.auth.sign_in_with_password.return_value = make_auth_response()
    client.auth.verify_otp.return_value = make_auth_response()
    client.auth.sign_up.return_value = SimpleNamespace(user=make_backend_user(confirmed=False), session=None)
    client.auth.get_session.return_value = make_backend_session()
    client.auth.sign_out.return_value = None

    set_select_rows(client, [make_profile_row()])
    client.table.return_value.insert.return_value.execute.return_value = MagicMock(
        data=[make_profile_row()]
    )
    client.table.return_value.update.return_value.eq.return_value.execute.return_value = (
        MagicMock(data=[make_profile_row()])
    )

    bucket = client.storage.from_.return_value
    bucket.upload.return_value = MagicMock()
    bucket.get_public_url.return_value = (
        f"https://test.supabase.co/storage/v1/object/public/avatars/{TEST_USER_ID}/profile.jpg"
    )
    return client


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return TEST_USER_ID


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return TEST_EMAIL


@pytest.fixture
def fake_auth() -> MagicMock:
    """
    Auth service double for state and flow tests.

    Signed in as TEST_USER_ID with a confirmed session by default.
    """
    auth = MagicMock()
    auth.current_session = AsyncMock(
        return_value=AuthSession(user_id=TEST_USER_ID, email=TEST_EMAIL)
    )
    auth.current_user_id = AsyncMock(return_value=TEST_USER_ID)
    auth.fetch_profile = AsyncMock(return_value=make_profile())
    auth.sign_out = AsyncMock(return_value=None)
    auth.check_email_exists = AsyncMock(return_value=False)
    auth.sign_in = AsyncMock(return_value=make_profile())
    auth.sign_up = AsyncMock(return_value=None)
    auth.verify_otp = AsyncMock(return_value=make_profile())
    auth.update_profile = AsyncMock(return_value=make_profile())
    auth.upload_profile_image = AsyncMock(
        return_value=f"https://test.supabase.co/storage/v1/object/public/avatars/{TEST_USER_ID}/profile.jpg"
    )
    auth.subscribe = MagicMock()
    return auth
