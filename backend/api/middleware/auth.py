"""
JWT Authentication middleware.

Validates identity provider access tokens and extracts user information.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from datetime import datetime, timezone

from shared.config import get_settings
from shared.exceptions import AuthenticationError
from shared.models import AuthenticatedUser
from ..models.user import TokenPayload

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


class AuthError(AuthenticationError):
    """Bearer authentication failed. Rendered as a 401."""

    def __init__(self, message: str, code: str = "UNAUTHORIZED"):
        super().__init__(message, code=code)


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate an access token.

    Args:
        token: The JWT token string

    Returns:
        TokenPayload with decoded claims

    Raises:
        AuthError: If token is invalid or expired
    """
    settings = get_settings()

    if not settings.supabase_jwt_secret:
        raise AuthError("Server authentication not configured")

    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired", code="TOKEN_EXPIRED")
    except JWTError as e:
        raise AuthError(f"Invalid token: {str(e)}", code="INVALID_TOKEN")


def get_user_from_payload(payload: TokenPayload, token: str) -> AuthenticatedUser:
    """Convert JWT claims to the AuthenticatedUser handed to routes."""
    return AuthenticatedUser(
        id=payload.sub,
        email=payload.email,
        email_verified=payload.email_confirmed_at is not None,
        last_sign_in=datetime.fromtimestamp(payload.iat, tz=timezone.utc),
        session_expires_at=datetime.fromtimestamp(payload.exp, tz=timezone.utc),
        access_token=token,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Usage:
        @router.post("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None:
        raise AuthError("Authentication required")

    payload = decode_token(credentials.credentials)
    return get_user_from_payload(payload, credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    """
    Dependency that optionally extracts user if authenticated.

    Invalid or expired tokens are treated as anonymous.
    """
    if credentials is None:
        return None

    try:
        payload = decode_token(credentials.credentials)
        return get_user_from_payload(payload, credentials.credentials)
    except AuthError:
        return None
