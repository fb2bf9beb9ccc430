"""
Shared test fixtures and utilities.

Services are wired through a ServiceContainer configured for in-memory
storage and identity, with a recording email sender in place of delivery.
"""

import re
from datetime import datetime, timezone, timedelta
from typing import Optional
from unittest.mock import patch

import jwt  # PyJWT
import pytest

from api.dependencies import ServiceContainer, reset_container, set_container
from modules.notifications.exceptions import EmailDeliveryError
from modules.notifications.models import EmailMessage
from modules.notifications.service import BaseEmailSender
from shared.config import Settings
from shared.models import SecurityContext


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

SIX_DIGITS = re.compile(r"\b(\d{6})\b")
LINK_TOKEN = re.compile(r"(?:invitation|token)=([0-9a-f]{64})")


class RecordingEmailSender(BaseEmailSender):
    """Keeps rendered emails in memory. Set ``fail`` to simulate relay outages."""

    def __init__(self, app_url: str = "http://localhost:3000"):
        super().__init__(app_url)
        self.messages: list[EmailMessage] = []
        self.fail = False

    async def deliver(self, message: EmailMessage) -> None:
        if self.fail:
            raise EmailDeliveryError(message.to_email, "simulated outage")
        self.messages.append(message)

    def sent_to(self, email: str, category: Optional[str] = None) -> list[EmailMessage]:
        return [
            m for m in self.messages
            if m.to_email == email and (category is None or m.category == category)
        ]

    def last_code(self, email: str, category: Optional[str] = None) -> str:
        """Six-digit code from the latest matching email."""
        message = self.sent_to(email, category)[-1]
        match = SIX_DIGITS.search(message.body)
        assert match, f"no code in email: {message.body!r}"
        return match.group(1)

    def last_link_token(self, email: str, category: Optional[str] = None) -> str:
        """Raw token embedded in the latest matching email's link."""
        message = self.sent_to(email, category)[-1]
        match = LINK_TOKEN.search(message.body)
        assert match, f"no link token in email: {message.body!r}"
        return match.group(1)


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified
        secret: Signing secret

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
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_service_container():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        storage_backend="memory",
        identity_backend="memory",
        email_backend="console",
        supabase_jwt_secret=TEST_JWT_SECRET,
        app_url="http://localhost:3000",
    )


@pytest.fixture
def outbox() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def container(test_settings, outbox) -> ServiceContainer:
    """Memory-backed container installed as the app's container."""
    container = ServiceContainer(test_settings)
    container._email = outbox
    set_container(container)
    return container


@pytest.fixture
def context() -> SecurityContext:
    return SecurityContext(ip_address="203.0.113.7", user_agent="pytest")


@pytest.fixture
def api_client(container, test_settings):
    """TestClient against the app with bearer auth using the test secret."""
    from fastapi.testclient import TestClient
    from api import app

    with patch("api.middleware.auth.get_settings", return_value=test_settings):
        with TestClient(app, raise_server_exceptions=False) as client:
            yield client


@pytest.fixture
def make_token():
    return create_test_token


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
