"""
Identity provider implementations.

SupabaseIdentityProvider wraps the Supabase Auth admin API. Users are created
without a password (``email_confirm`` set, no credential), and sessions are
minted server-side by generating an admin magic link and exchanging its
hashed token immediately, so no email is sent by the provider.

MemoryIdentityProvider keeps users and sessions in memory for tests and
local development.
"""

import logging
import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from jose import jwt
from supabase import AuthError as SupabaseAuthError
from supabase import Client

from .exceptions import (
    EmailAlreadyExistsError,
    IdentityProviderError,
    InvalidEmailError,
    OtpVerificationError,
    SessionTokenError,
)
from .models import IdentityUser, IssuedSession

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 3600
LIST_USERS_PAGE_SIZE = 200


def _provider_message(error: Exception) -> str:
    return str(getattr(error, "message", None) or error)


def translate_provider_error(error: Exception, operation: str, email: str = "") -> Exception:
    """
    Map a raw provider error onto the identity error taxonomy.

    Args:
        error: Exception raised by the provider SDK
        operation: Adapter operation that failed
        email: Email involved, for conflict errors

    Returns:
        The exception to raise in its place
    """
    message = _provider_message(error).lower()
    if "already" in message and ("registered" in message or "exists" in message):
        return EmailAlreadyExistsError(email)
    if "email" in message and ("invalid" in message or "format" in message):
        return InvalidEmailError()
    return IdentityProviderError(operation, _provider_message(error))


def translate_refresh_error(error: Exception) -> SessionTokenError:
    """Map a refresh failure onto a typed session error."""
    message = _provider_message(error).lower()
    if "expired" in message:
        return SessionTokenError("TOKEN_EXPIRED", "Refresh token has expired")
    if "revoked" in message or "already used" in message:
        return SessionTokenError("TOKEN_REVOKED", "Refresh token has been revoked")
    if "invalid" in message:
        return SessionTokenError("INVALID_TOKEN", "Invalid refresh token")
    return SessionTokenError()


class SupabaseIdentityProvider:
    """
    Identity provider backed by Supabase Auth.

    Args:
        admin_client: Service-role client for the admin API
        session_client_factory: Returns a fresh anon client for session
            exchanges; Supabase clients keep the last session they see
    """

    def __init__(self, admin_client: Client, session_client_factory: Callable[[], Client]):
        self._admin = admin_client
        self._session_client_factory = session_client_factory

    @staticmethod
    def _map_user(user: Any) -> IdentityUser:
        return IdentityUser(
            id=str(user.id),
            email=user.email or "",
            email_confirmed_at=getattr(user, "email_confirmed_at", None),
            created_at=getattr(user, "created_at", None),
            updated_at=getattr(user, "updated_at", None),
            user_metadata=getattr(user, "user_metadata", None) or {},
        )

    def _map_session(self, session: Any, user: Any = None) -> IssuedSession:
        expires_in = session.expires_in or SESSION_TTL_SECONDS
        return IssuedSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            token_type=session.token_type or "bearer",
            expires_in=expires_in,
            expires_at=session.expires_at or int(time.time()) + expires_in,
            user=self._map_user(user) if user is not None else None,
        )

    async def get_user(self, user_id: str) -> Optional[IdentityUser]:
        try:
            response = self._admin.auth.admin.get_user_by_id(user_id)
        except SupabaseAuthError as e:
            if getattr(e, "status", None) == 404:
                return None
            raise translate_provider_error(e, "get_user") from e
        if response is None or response.user is None:
            return None
        return self._map_user(response.user)

    async def get_user_by_email(self, email: str) -> Optional[IdentityUser]:
        # The admin API has no lookup by email; page through users.
        page = 1
        while True:
            try:
                users = self._admin.auth.admin.list_users(
                    page=page, per_page=LIST_USERS_PAGE_SIZE
                )
            except SupabaseAuthError as e:
                raise translate_provider_error(e, "get_user_by_email") from e

            for user in users:
                if (user.email or "").lower() == email:
                    return self._map_user(user)
            if len(users) < LIST_USERS_PAGE_SIZE:
                return None
            page += 1

    async def create_user(
        self, email: str, metadata: Optional[dict[str, Any]] = None
    ) -> IdentityUser:
        try:
            response = self._admin.auth.admin.create_user({
                "email": email,
                "email_confirm": True,
                "user_metadata": metadata or {},
            })
        except SupabaseAuthError as e:
            raise translate_provider_error(e, "create_user", email) from e

        if response is None or response.user is None:
            raise IdentityProviderError("create_user", "No user returned")
        logger.info(f"Created identity user {response.user.id}")
        return self._map_user(response.user)

    async def confirm_email(self, user_id: str) -> None:
        try:
            self._admin.auth.admin.update_user_by_id(user_id, {"email_confirm": True})
        except SupabaseAuthError as e:
            raise translate_provider_error(e, "confirm_email") from e

    async def issue_session(self, email: str) -> IssuedSession:
        try:
            link = self._admin.auth.admin.generate_link({"type": "magiclink", "email": email})
            client = self._session_client_factory()
            response = client.auth.verify_otp({
                "token_hash": link.properties.hashed_token,
                "type": "magiclink",
            })
        except SupabaseAuthError as e:
            raise translate_provider_error(e, "issue_session", email) from e

        if response.session is None:
            raise IdentityProviderError("issue_session", "No session returned")
        return self._map_session(response.session, response.user)

    async def verify_otp(self, token_hash: str, otp_type: str) -> IdentityUser:
        try:
            client = self._session_client_factory()
            response = client.auth.verify_otp({"token_hash": token_hash, "type": otp_type})
        except SupabaseAuthError as e:
            reason = "expired" if "expired" in _provider_message(e).lower() else "invalid"
            raise OtpVerificationError(reason) from e

        if response.user is None:
            raise OtpVerificationError("invalid")
        return self._map_user(response.user)

    async def refresh_session(self, refresh_token: str) -> IssuedSession:
        try:
            client = self._session_client_factory()
            response = client.auth.refresh_session(refresh_token)
        except SupabaseAuthError as e:
            raise translate_refresh_error(e) from e

        if response.session is None:
            raise SessionTokenError()
        return self._map_session(response.session, response.user)

    async def sign_out(self, access_token: str) -> None:
        try:
            self._admin.auth.admin.sign_out(access_token)
        except SupabaseAuthError as e:
            raise translate_provider_error(e, "sign_out") from e

    async def ping(self) -> bool:
        try:
            self._admin.auth.admin.list_users(page=1, per_page=1)
        except Exception:
            logger.exception("Identity provider health check failed")
            return False
        return True


class MemoryIdentityProvider:
    """
    Identity provider with in-memory storage.

    For testing and development. When ``jwt_secret`` is set, access tokens
    are HS256 JWTs accepted by the API's bearer authentication.
    """

    def __init__(self, jwt_secret: Optional[str] = None):
        self._jwt_secret = jwt_secret
        self._users: dict[str, IdentityUser] = {}
        self._refresh_tokens: dict[str, str] = {}
        self._revoked: set[str] = set()
        self._otps: dict[str, tuple[str, float]] = {}

    async def get_user(self, user_id: str) -> Optional[IdentityUser]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[IdentityUser]:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    async def create_user(
        self, email: str, metadata: Optional[dict[str, Any]] = None
    ) -> IdentityUser:
        if await self.get_user_by_email(email):
            raise EmailAlreadyExistsError(email)
        now = datetime.now(timezone.utc)
        user = IdentityUser(
            id=str(uuid.uuid4()),
            email=email,
            email_confirmed_at=now,
            created_at=now,
            updated_at=now,
            user_metadata=metadata or {},
        )
        self._users[user.id] = user
        return user

    async def confirm_email(self, user_id: str) -> None:
        user = self._users.get(user_id)
        if user is None:
            raise IdentityProviderError("confirm_email", "User not found")
        if user.email_confirmed_at is None:
            self._users[user_id] = user.model_copy(
                update={"email_confirmed_at": datetime.now(timezone.utc)}
            )

    def _mint(self, user: IdentityUser) -> IssuedSession:
        now = int(time.time())
        if self._jwt_secret:
            access_token = jwt.encode(
                {
                    "sub": user.id,
                    "email": user.email,
                    "email_confirmed_at": (
                        user.email_confirmed_at.isoformat() if user.email_confirmed_at else None
                    ),
                    "aud": "authenticated",
                    "role": "authenticated",
                    "iat": now,
                    "exp": now + SESSION_TTL_SECONDS,
                },
                self._jwt_secret,
                algorithm="HS256",
            )
        else:
            access_token = secrets.token_urlsafe(32)
        refresh_token = secrets.token_urlsafe(32)
        self._refresh_tokens[refresh_token] = user.id
        return IssuedSession(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=SESSION_TTL_SECONDS,
            expires_at=now + SESSION_TTL_SECONDS,
            user=user,
        )

    async def issue_session(self, email: str) -> IssuedSession:
        user = await self.get_user_by_email(email)
        if user is None:
            raise IdentityProviderError("issue_session", "User not found")
        return self._mint(user)

    def add_otp(self, token_hash: str, email: str, ttl_seconds: int = 3600) -> None:
        """Register a provider one-time token (tests and development)."""
        self._otps[token_hash] = (email, time.time() + ttl_seconds)

    async def verify_otp(self, token_hash: str, otp_type: str) -> IdentityUser:
        entry = self._otps.pop(token_hash, None)
        if entry is None:
            raise OtpVerificationError("invalid")
        email, expires_at = entry
        if time.time() > expires_at:
            raise OtpVerificationError("expired")
        user = await self.get_user_by_email(email)
        if user is None:
            raise OtpVerificationError("invalid")
        return user

    async def refresh_session(self, refresh_token: str) -> IssuedSession:
        if refresh_token in self._revoked:
            raise SessionTokenError("TOKEN_REVOKED", "Refresh token has been revoked")
        user_id = self._refresh_tokens.pop(refresh_token, None)
        if user_id is None or user_id not in self._users:
            raise SessionTokenError("INVALID_TOKEN", "Invalid refresh token")
        self._revoked.add(refresh_token)
        return self._mint(self._users[user_id])

    async def sign_out(self, access_token: str) -> None:
        return None

    async def ping(self) -> bool:
        return True
