"""
Authentication module.

Passwordless signup, email verification, one-time-code login and
session refresh/logout.

Public API:
- AuthService: Orchestrates the auth endpoints
- IProfileRepository: Persistence for user profiles
- Request/response models for each endpoint
- Auth exceptions: DisposableEmailError, InvalidInvitationError, etc.
"""

from .interfaces import IProfileRepository
from .models import (
    REMEMBER_ME_MAX_AGE_SECONDS,
    SESSION_MAX_AGE_SECONDS,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    RefreshRequest,
    ResendVerificationRequest,
    SignupRequest,
    SignupResponse,
    UserProfile,
    VerifyEmailRequest,
    VerifyEmailResponse,
    VerifyLoginRequest,
)
from .exceptions import (
    AccountLockedError,
    DisposableEmailError,
    InvalidInvitationError,
    InvitationEmailMismatchError,
    UserNotFoundError,
)
from .repository import MemoryProfileRepository, SupabaseProfileRepository
from .service import AuthService

__all__ = [
    # Service
    "AuthService",
    # Interface
    "IProfileRepository",
    # Repositories
    "MemoryProfileRepository",
    "SupabaseProfileRepository",
    # Models
    "UserProfile",
    "SignupRequest",
    "SignupResponse",
    "VerifyEmailRequest",
    "VerifyEmailResponse",
    "ResendVerificationRequest",
    "LoginRequest",
    "LoginResponse",
    "VerifyLoginRequest",
    "RefreshRequest",
    "MessageResponse",
    "LogoutResponse",
    "SESSION_MAX_AGE_SECONDS",
    "REMEMBER_ME_MAX_AGE_SECONDS",
    # Exceptions
    "DisposableEmailError",
    "InvalidInvitationError",
    "InvitationEmailMismatchError",
    "UserNotFoundError",
    "AccountLockedError",
]
