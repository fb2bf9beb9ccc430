"""
Authentication module data models.

Request and response bodies for the auth endpoints, and the user profile
row created alongside each account.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from modules.families.models import FamilySummary
from modules.identity.models import AuthSessionResponse, IdentityUser, IssuedSession
from modules.verification.models import VerificationType
from shared.models import AuthenticatedUser

NAME_PATTERN = r"^[a-zA-Z\s'-]+$"
PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"
SIX_DIGIT_PATTERN = r"^\d{6}$"

SESSION_MAX_AGE_SECONDS = 48 * 60 * 60
REMEMBER_ME_MAX_AGE_SECONDS = 7 * 24 * 60 * 60


class UserProfile(BaseModel):
    """
    Application profile, one-to-one with the identity user.

    Created at signup when possible, otherwise lazily on first verification.
    """

    id: str = Field(..., description="User ID (UUID)")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    preferred_language: str = "en"
    timezone: str = "UTC"
    notification_preferences: dict[str, Any] = Field(default_factory=dict)
    accessibility_preferences: dict[str, Any] = Field(default_factory=dict)
    two_factor_enabled: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Passwordless signup."""

    email: EmailStr
    first_name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=NAME_PATTERN)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=NAME_PATTERN)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    family_invitation_token: Optional[str] = Field(None, min_length=1)


class VerifyEmailRequest(BaseModel):
    """
    Either a six-digit ``code`` or a legacy ``token``.

    When both are sent the code is used.
    """

    code: Optional[str] = Field(None, pattern=SIX_DIGIT_PATTERN)
    email: Optional[EmailStr] = None
    token: Optional[str] = Field(None, min_length=1)
    type: VerificationType = VerificationType.SIGNUP

    @model_validator(mode="after")
    def require_code_or_token(self) -> "VerifyEmailRequest":
        if not self.code and not self.token:
            raise ValueError("Either code or token is required")
        if self.type not in (VerificationType.SIGNUP, VerificationType.EMAIL_CHANGE):
            raise ValueError("type must be signup or email_change")
        return self


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    remember_me: bool = False


class VerifyLoginRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=SIX_DIGIT_PATTERN)
    remember_me: bool = False


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: IdentityUser
    session: Optional[IssuedSession] = None
    needs_email_verification: bool = True
    family_joined: bool = False
    family_id: Optional[str] = None
    recovery_code: Optional[str] = Field(
        None, description="Shown once; cannot be retrieved again"
    )
    verification_code_sent: bool = False


class VerifyEmailResponse(AuthSessionResponse):
    verified: bool = True


class LoginResponse(AuthSessionResponse):
    remember_me: bool = False
    session_max_age: int = SESSION_MAX_AGE_SECONDS


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class LogoutResponse(BaseModel):
    success: bool = True
    logged_out: bool = True
    message: str = "Logged out successfully"


class SessionStatus(BaseModel):
    """Expiry of the caller's current access token."""

    expires_at: int = Field(..., description="Access token expiry (Unix timestamp)")
    expires_in: int = Field(..., description="Seconds until the access token expires")


class SessionResponse(BaseModel):
    """
    Current session state.

    Clients call this on every authenticated page load to schedule their
    refresh and expiry timers.
    """

    success: bool = True
    message: str
    authenticated: bool
    session: Optional[SessionStatus] = None
    user: Optional[AuthenticatedUser] = None
    profile: Optional[UserProfile] = None
    families: list[FamilySummary] = Field(default_factory=list)


class CurrentUserResponse(BaseModel):
    success: bool = True
    message: str = "User profile retrieved successfully"
    user: AuthenticatedUser
    profile: Optional[UserProfile] = None
    families: list[FamilySummary] = Field(default_factory=list)
    profile_complete: bool = False
    has_families: bool = False
    two_factor_enabled: bool = False
