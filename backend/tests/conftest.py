"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Optional
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt

from api import app
from api.dependencies import (
    get_account_service,
    get_notifier,
    get_subscription_service,
    get_user_store,
    reset_container,
)
from modules.accounts.service import AccountService
from modules.notifications.recording import RecordingDispatcher
from modules.subscriptions.service import SubscriptionService
from modules.users.models import User, UserRole
from modules.users.repository import InMemoryUserStore
from modules.verification.service import VerificationService


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# Fixed point in time used by the clock fixture
NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def make_user(
    user_id: str = "test-user-123",
    email: Optional[str] = None,
    role: UserRole = UserRole.FREE,
    **fields,
) -> User:
    """Build a User with sensible defaults."""
    return User(
        id=user_id,
        username=fields.pop("username", f"user-{user_id}"),
        email=email or f"{user_id}@example.com",
        role=role,
        **fields,
    )


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def reset_services():
    """Reset the service container and dependency overrides around each test."""
    reset_container()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()
    reset_container()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def subscription_service(user_store, dispatcher, clock) -> SubscriptionService:
    return SubscriptionService(user_store, dispatcher, daily_limit=2, clock=clock)


@pytest.fixture
def verification_service(dispatcher, clock) -> VerificationService:
    return VerificationService(dispatcher, clock=clock)


@pytest.fixture
def account_service(user_store, verification_service, clock) -> AccountService:
    return AccountService(user_store, verification_service, clock=clock)


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid auth token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def auth_settings():
    """Patch the API settings used for token validation."""
    with patch("api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        yield mock_settings.return_value


@pytest.fixture
def api_client(auth_settings, user_store, dispatcher, subscription_service, account_service):
    """
    TestClient wired to in-memory services.

    The JWT secret is patched so tokens from create_test_token validate.
    """
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_notifier] = lambda: dispatcher
    app.dependency_overrides[get_subscription_service] = lambda: subscription_service
    app.dependency_overrides[get_account_service] = lambda: account_service

    return TestClient(app)


@pytest.fixture
def user_factory():
    """Return the make_user builder."""
    return make_user


@pytest.fixture
def add_user(user_store):
    """Build a user, save it in the in-memory store and return it."""
    def _add(user_id: str = "test-user-123", **fields) -> User:
        return user_store.save(make_user(user_id, **fields))
    return _add


@pytest.fixture
def token_factory():
    """Return the create_test_token builder."""
    return create_test_token


@pytest.fixture
def headers_for():
    """Build authorization headers for a user ID and email."""
    def _headers(user_id: str = "test-user-123", email: str = "test@example.com") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_test_token(user_id=user_id, email=email)}"}
    return _headers
