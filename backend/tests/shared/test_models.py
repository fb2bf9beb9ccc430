"""
Tests for shared models.
"""

import pytest
from pydantic import ValidationError

from shared.models import AuthenticatedUser, SecurityContext


class TestAuthenticatedUser:
    """Tests for the AuthenticatedUser model in shared."""

    def test_create_with_required_fields(self):
        """Should create user with only required fields."""
        user = AuthenticatedUser(id="user-123", email="test@example.com")
        assert user.id == "user-123"
        assert user.email == "test@example.com"
        assert user.email_verified is False
        assert user.access_token is None

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            AuthenticatedUser(id="user-123", email="not-an-email")

    def test_is_frozen(self):
        user = AuthenticatedUser(id="user-123", email="test@example.com")
        with pytest.raises(ValidationError):
            user.id = "other"

    def test_access_token_hidden(self):
        """The bearer token should not leak through repr or dumps."""
        user = AuthenticatedUser(id="user-123", email="test@example.com", access_token="secret-jwt")
        assert "secret-jwt" not in repr(user)
        assert "access_token" not in user.model_dump()

    def test_ignores_extra_claims(self):
        user = AuthenticatedUser(id="user-123", email="test@example.com", role="authenticated")
        assert not hasattr(user, "role")


class TestSecurityContext:
    def test_defaults(self):
        context = SecurityContext()
        assert context.ip_address == "unknown"
        assert context.user_agent == "unknown"
