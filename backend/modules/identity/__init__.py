"""
Identity provider adapter module.

Wraps the managed identity service's user and session primitives and
translates its errors into the application's taxonomy.

Public API:
- IIdentityProvider: Interface used by the auth flows
- SupabaseIdentityProvider: Production implementation
- MemoryIdentityProvider: Testing/development implementation
"""

from .exceptions import (
    EmailAlreadyExistsError,
    IdentityProviderError,
    InvalidEmailError,
    OtpVerificationError,
    SessionTokenError,
)
from .interfaces import IIdentityProvider
from .models import AuthSessionResponse, IdentityUser, IssuedSession
from .service import (
    MemoryIdentityProvider,
    SupabaseIdentityProvider,
    translate_provider_error,
    translate_refresh_error,
)

__all__ = [
    "IIdentityProvider",
    "IdentityUser",
    "IssuedSession",
    "AuthSessionResponse",
    "EmailAlreadyExistsError",
    "IdentityProviderError",
    "InvalidEmailError",
    "OtpVerificationError",
    "SessionTokenError",
    "MemoryIdentityProvider",
    "SupabaseIdentityProvider",
    "translate_provider_error",
    "translate_refresh_error",
]
