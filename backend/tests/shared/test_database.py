"""Tests for shared/database.py."""

import pytest
from unittest.mock import patch, MagicMock

from shared.database import (
    get_supabase_anon_client,
    get_supabase_client,
    reset_client_cache,
)


class TestSupabaseClient:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    def teardown_method(self):
        reset_client_cache()

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_get_supabase_client_creates_client(self, mock_settings, mock_create):
        """Should create client with service role key."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_service_role_key = "test-key"
        mock_create.return_value = MagicMock()

        client = get_supabase_client()

        mock_create.assert_called_once_with("https://test.supabase.co", "test-key")
        assert client is mock_create.return_value

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_get_supabase_client_is_cached(self, mock_settings, mock_create):
        """Should return the same client on repeated calls."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_service_role_key = "test-key"

        assert get_supabase_client() is get_supabase_client()
        assert mock_create.call_count == 1

    @patch("shared.database.get_settings")
    def test_missing_config_raises(self, mock_settings):
        """Should raise when Supabase settings are missing."""
        mock_settings.return_value.supabase_url = ""
        mock_settings.return_value.supabase_service_role_key = ""

        with pytest.raises(RuntimeError, match="SUPABASE_URL"):
            get_supabase_client()

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_anon_client_is_fresh_each_call(self, mock_settings, mock_create):
        """Anon clients carry session state, so each call gets a new one."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = "anon-key"
        mock_create.side_effect = [MagicMock(), MagicMock()]

        first = get_supabase_anon_client()
        second = get_supabase_anon_client()

        assert first is not second
        mock_create.assert_called_with("https://test.supabase.co", "anon-key")

    @patch("shared.database.get_settings")
    def test_anon_client_missing_key_raises(self, mock_settings):
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = ""

        with pytest.raises(RuntimeError, match="SUPABASE_ANON_KEY"):
            get_supabase_anon_client()
