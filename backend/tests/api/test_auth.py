"""
Tests for JWT authentication middleware and the auth endpoints.
"""

import asyncio
import re
import pytest
from unittest.mock import MagicMock, patch

from api.middleware.auth import AuthError, decode_token, get_user_from_payload
from api.middleware.context import client_ip

RECOVERY_CODE = re.compile(r"^[A-Z0-9]{5}-[A-Z0-9]{5}$")


class TestAuthentication:

    def test_valid_token(self, test_settings, make_token):
        """Valid token should decode successfully."""
        with patch("api.middleware.auth.get_settings", return_value=test_settings):
            payload = decode_token(make_token())
        assert payload.sub == "test-user-123"
        assert payload.email == "test@example.com"

    def test_expired_token(self, test_settings, make_token):
        """Expired token should raise AuthError."""
        with patch("api.middleware.auth.get_settings", return_value=test_settings):
            with pytest.raises(AuthError) as exc_info:
                decode_token(make_token(expired=True))
        assert exc_info.value.code == "TOKEN_EXPIRED"
        assert "expired" in exc_info.value.message.lower()

    def test_invalid_token(self, test_settings):
        """Invalid token should raise AuthError."""
        with patch("api.middleware.auth.get_settings", return_value=test_settings):
            with pytest.raises(AuthError) as exc_info:
                decode_token("invalid-token")
        assert exc_info.value.code == "INVALID_TOKEN"
        assert "Invalid token" in exc_info.value.message

    def test_wrong_secret(self, test_settings, make_token):
        with patch("api.middleware.auth.get_settings", return_value=test_settings):
            with pytest.raises(AuthError):
                decode_token(make_token(secret="another-secret"))

    def test_unconfigured_secret(self, make_token):
        settings = MagicMock(supabase_jwt_secret=None)
        with patch("api.middleware.auth.get_settings", return_value=settings):
            with pytest.raises(AuthError) as exc_info:
                decode_token(make_token())
        assert exc_info.value.message == "Server authentication not configured"
        assert exc_info.value.status_code == 401

    def test_user_from_payload(self, test_settings, make_token):
        token = make_token(email_verified=False)
        with patch("api.middleware.auth.get_settings", return_value=test_settings):
            user = get_user_from_payload(decode_token(token), token)
        assert user.id == "test-user-123"
        assert user.email_verified is False
        assert user.access_token == token
        assert user.session_expires_at is not None

    def test_missing_auth_header(self, api_client):
        """Protected route without a bearer token should return 401."""
        response = api_client.post("/api/families/fam-1/invitations", json={"email": "a@example.com"})
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authentication required",
            "code": "UNAUTHORIZED",
        }
        assert response.headers["www-authenticate"] == "Bearer"

    def test_expired_token_rejected(self, api_client, make_token):
        response = api_client.post(
            "/api/families/fam-1/invitations",
            json={"email": "a@example.com"},
            headers={"Authorization": f"Bearer {make_token(expired=True)}"},
        )
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"


class TestClientIp:

    def _request(self, headers, host="10.0.0.1"):
        request = MagicMock()
        request.headers = {k.lower(): v for k, v in headers.items()}
        request.client.host = host
        return request

    def test_first_forwarded_hop(self):
        request = self._request({"X-Forwarded-For": "198.51.100.4, 10.0.0.2"})
        assert client_ip(request) == "198.51.100.4"

    def test_real_ip(self):
        assert client_ip(self._request({"X-Real-IP": "198.51.100.9"})) == "198.51.100.9"

    def test_socket_peer(self):
        assert client_ip(self._request({})) == "10.0.0.1"

    def test_unknown(self):
        request = self._request({})
        request.client = None
        assert client_ip(request) == "unknown"


class TestSignupFlow:

    def test_signup_verify_and_login(self, api_client, outbox):
        response = api_client.post(
            "/api/auth/signup", json={"email": "Ada@Example.com", "first_name": "Ada"}
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["needs_email_verification"] is True
        assert data["verification_code_sent"] is True
        assert RECOVERY_CODE.match(data["recovery_code"])
        assert data["family_id"]

        code = outbox.last_code("ada@example.com", "verification")
        response = api_client.post(
            "/api/auth/verify-email", json={"code": code, "email": "ada@example.com"}
        )
        assert response.status_code == 200
        assert response.json()["verified"] is True
        assert response.json()["session"]["access_token"]
        assert outbox.sent_to("ada@example.com", "welcome")

        again = api_client.post(
            "/api/auth/verify-email", json={"code": code, "email": "ada@example.com"}
        )
        assert again.status_code == 400
        assert again.json()["code"] == "ALREADY_VERIFIED"

        response = api_client.post(
            "/api/auth/login", json={"email": "ada@example.com", "remember_me": True}
        )
        assert response.status_code == 200
        login_code = outbox.last_code("ada@example.com", "login")

        response = api_client.post(
            "/api/auth/login/verify",
            json={"email": "ada@example.com", "code": login_code, "remember_me": True},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["session_max_age"] == 7 * 24 * 60 * 60
        assert data["session"]["refresh_token"]

        refreshed = api_client.post(
            "/api/auth/refresh", json={"refresh_token": data["session"]["refresh_token"]}
        )
        assert refreshed.status_code == 200
        assert refreshed.json()["session"]["access_token"]

    def test_duplicate_signup_conflicts(self, api_client):
        api_client.post("/api/auth/signup", json={"email": "ada@example.com"})
        response = api_client.post("/api/auth/signup", json={"email": "ada@example.com"})
        assert response.status_code == 409
        assert response.json()["code"] == "USER_ALREADY_EXISTS"

    def test_wrong_code(self, api_client):
        api_client.post("/api/auth/signup", json={"email": "ada@example.com"})
        response = api_client.post(
            "/api/auth/verify-email", json={"code": "000000", "email": "ada@example.com"}
        )
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["code"] == "INVALID_CODE"

    def test_signup_rate_limited(self, api_client):
        for i in range(3):
            response = api_client.post("/api/auth/signup", json={"email": f"user{i}@example.com"})
            assert response.status_code == 201

        response = api_client.post("/api/auth/signup", json={"email": "user3@example.com"})

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(response.headers["retry-after"]) > 0
        assert response.headers["x-ratelimit-limit"] == "3"

    def test_rate_limit_is_per_ip(self, api_client):
        for i in range(3):
            api_client.post("/api/auth/signup", json={"email": f"user{i}@example.com"})

        response = api_client.post(
            "/api/auth/signup",
            json={"email": "other@example.com"},
            headers={"X-Forwarded-For": "198.51.100.20"},
        )
        assert response.status_code == 201

    def test_validation_error_shape(self, api_client):
        response = api_client.post("/api/auth/signup", json={"email": "not-an-email"})
        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "VALIDATION_ERROR"
        assert "email" in data["details"]["errors"]

    def test_validation_errors_count_against_limit(self, api_client):
        for _ in range(3):
            api_client.post("/api/auth/signup", json={"email": "bad"})
        response = api_client.post("/api/auth/signup", json={"email": "ada@example.com"})
        assert response.status_code == 429

    def test_resend_unknown_email(self, api_client):
        response = api_client.post(
            "/api/auth/resend-verification", json={"email": "nobody@example.com"}
        )
        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"


class TestLogin:

    def test_login_response_is_generic(self, api_client, outbox):
        api_client.post("/api/auth/signup", json={"email": "ada@example.com"})

        known = api_client.post("/api/auth/login", json={"email": "ada@example.com"})
        unknown = api_client.post("/api/auth/login", json={"email": "nobody@example.com"})

        assert known.json() == unknown.json()
        assert outbox.sent_to("ada@example.com", "login")
        assert not outbox.sent_to("nobody@example.com")

    def test_repeated_failures_rate_limited(self, api_client):
        for _ in range(5):
            response = api_client.post(
                "/api/auth/login/verify", json={"email": "ada@example.com", "code": "000000"}
            )
            assert response.status_code == 400

        response = api_client.post(
            "/api/auth/login/verify", json={"email": "ada@example.com", "code": "000000"}
        )
        assert response.status_code == 429

    def test_logout_without_session(self, api_client):
        response = api_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["logged_out"] is True

    def test_logout_with_session(self, api_client, auth_headers, container):
        response = api_client.post("/api/auth/logout", headers=auth_headers)
        assert response.status_code == 200
        assert container.audit_store.find("user_logout")


class TestSessionEndpoints:

    def test_anonymous_session(self, api_client):
        response = api_client.get("/api/auth/session")

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is False
        assert data["message"] == "No active session"
        assert data["session"] is None

    def test_expired_token_is_anonymous(self, api_client, make_token):
        response = api_client.get(
            "/api/auth/session",
            headers={"Authorization": f"Bearer {make_token(expired=True)}"},
        )
        assert response.status_code == 200
        assert response.json()["authenticated"] is False

    def test_active_session(self, api_client, auth_headers, container, test_user_id):
        asyncio.run(container.families.provision_default_family(test_user_id, "test@example.com"))

        response = api_client.get("/api/auth/session", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["user"]["id"] == test_user_id
        assert "access_token" not in data["user"]
        assert 3500 <= data["session"]["expires_in"] <= 3600
        assert data["session"]["expires_at"] > 0
        assert len(data["families"]) == 1

    def test_current_user_requires_auth(self, api_client):
        assert api_client.get("/api/auth/user").status_code == 401

    def test_current_user(self, api_client, auth_headers, container, test_user_id):
        asyncio.run(container.families.provision_default_family(test_user_id, "test@example.com"))

        response = api_client.get("/api/auth/user", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "test@example.com"
        assert data["has_families"] is True
        assert data["families"][0]["is_default_family"] is True
        assert data["profile_complete"] is False
        assert container.audit_store.find("user_profile_accessed")
