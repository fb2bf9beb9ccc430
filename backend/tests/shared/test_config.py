"""Tests for shared/config.py."""

import pytest
from unittest.mock import patch
import os

from pydantic import ValidationError

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self):
        """Settings should have sensible defaults."""
        settings = Settings(_env_file=None)
        assert settings.app_name == "FamilyHub API"
        assert settings.app_version == "1.0.0"
        assert settings.debug is False
        assert settings.port == 8000
        assert settings.storage_backend == "supabase"
        assert settings.identity_backend == "supabase"
        assert settings.email_backend == "console"
        assert settings.rate_limit_fail_closed is False

    def test_token_lifetimes(self):
        settings = Settings(_env_file=None)
        assert settings.verification_code_ttl_minutes == 15
        assert settings.login_code_ttl_minutes == 10
        assert settings.magic_link_ttl_minutes == 15
        assert settings.invitation_ttl_days == 7
        assert settings.recovery_code_ttl_days == 730

    def test_cors_defaults(self):
        settings = Settings(_env_file=None)
        assert "https://familyhub.care" in settings.cors_origins
        assert "Authorization" in settings.cors_allow_headers
        assert settings.cors_max_age == 86400

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"DEBUG": "true", "PORT": "9000", "STORAGE_BACKEND": "memory"}):
            settings = Settings(_env_file=None)
            assert settings.debug is True
            assert settings.port == 9000
            assert settings.storage_backend == "memory"

    def test_rejects_unknown_backend(self):
        with patch.dict(os.environ, {"IDENTITY_BACKEND": "ldap"}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_disposable_domains_from_env(self):
        with patch.dict(os.environ, {"DISPOSABLE_EMAIL_DOMAINS": '["trash.example"]'}):
            settings = Settings(_env_file=None)
            assert settings.disposable_email_domains == ["trash.example"]


class TestGetSettings:
    def test_returns_cached_instance(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()
