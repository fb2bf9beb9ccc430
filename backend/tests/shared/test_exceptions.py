"""Tests for shared/exceptions.py."""

import pytest

from shared.exceptions import (
    STATUS_BY_KIND,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorKind,
    ExternalServiceError,
    FamilyHubError,
    NotFoundError,
    ValidationError,
)


class TestFamilyHubError:
    def test_message(self):
        """FamilyHubError should store message."""
        error = FamilyHubError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_default_code(self):
        """Code should default to the class name."""
        assert FamilyHubError("Test error").code == "FamilyHubError"

    def test_custom_code_and_details(self):
        error = FamilyHubError("Test error", code="CUSTOM_ERROR", details={"key": "value"})
        assert error.code == "CUSTOM_ERROR"
        assert error.details == {"key": "value"}

    def test_default_kind_is_internal(self):
        error = FamilyHubError("boom")
        assert error.kind == ErrorKind.INTERNAL
        assert error.status_code == 500

    def test_to_dict(self):
        """to_dict should produce the API error envelope."""
        error = FamilyHubError("Test error", code="TEST_ERROR", details={"key": "value"})
        assert error.to_dict() == {
            "success": False,
            "error": "Test error",
            "code": "TEST_ERROR",
            "details": {"key": "value"},
        }

    def test_to_dict_omits_empty_details(self):
        assert "details" not in FamilyHubError("Test error").to_dict()


class TestKinds:
    @pytest.mark.parametrize("error_class,status", [
        (ValidationError, 400),
        (ConflictError, 409),
        (AuthenticationError, 401),
        (AuthorizationError, 403),
        (NotFoundError, 404),
    ])
    def test_status_follows_kind(self, error_class, status):
        error = error_class("msg")
        assert isinstance(error, FamilyHubError)
        assert error.status_code == status

    def test_every_kind_has_a_status(self):
        assert set(STATUS_BY_KIND) == set(ErrorKind)

    def test_locked_and_rate_limited(self):
        assert STATUS_BY_KIND[ErrorKind.LOCKED] == 423
        assert STATUS_BY_KIND[ErrorKind.RATE_LIMITED] == 429


class TestExternalServiceError:
    def test_records_service(self):
        error = ExternalServiceError("Relay down", service="email")
        assert error.service == "email"
        assert error.details["service"] == "email"
        assert error.status_code == 500
