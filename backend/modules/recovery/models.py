"""
Recovery module data models.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import AnyHttpUrl, BaseModel, EmailStr, Field, field_validator

from modules.identity.models import AuthSessionResponse

RECOVERY_CODE_PATTERN = r"^[A-Z0-9]{5}-[A-Z0-9]{5}$"
SIX_DIGIT_PATTERN = r"^\d{6}$"

GENERIC_RESET_MESSAGE = "If an account with that email exists, a sign-in link has been sent."
GENERIC_BACKUP_MESSAGE = (
    "If an account with that email has a verified backup email, "
    "a recovery code has been sent to it."
)


class RecoveryCode(BaseModel):
    """
    Stored recovery code. Only the hash and a three-character hint are kept.

    At most one row per user is active.
    """

    id: str
    user_id: str
    code_hash: str = Field(..., repr=False)
    code_hint: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime
    used_at: Optional[datetime] = None
    is_active: bool = True


class BackupEmail(BaseModel):
    """Secondary address used for account recovery."""

    id: str
    user_id: str
    email: str
    is_verified: bool = False
    verification_code: Optional[str] = Field(None, repr=False)
    verification_code_expires_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class ForgotPasswordRequest(BaseModel):
    email: EmailStr
    redirect_url: Optional[AnyHttpUrl] = None


class MagicLinkRequest(BaseModel):
    token: str = Field(..., min_length=1)


class RecoveryCodeVerifyRequest(BaseModel):
    email: EmailStr
    recovery_code: str = Field(..., pattern=RECOVERY_CODE_PATTERN)

    @field_validator("recovery_code", mode="before")
    @classmethod
    def normalize_code(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class BackupEmailRecoveryRequest(BaseModel):
    email: EmailStr


class BackupEmailRecoveryVerifyRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=SIX_DIGIT_PATTERN)


class AddBackupEmailRequest(BaseModel):
    email: EmailStr


class ConfirmBackupEmailRequest(BaseModel):
    code: str = Field(..., pattern=SIX_DIGIT_PATTERN)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class EmailSentResponse(BaseModel):
    """Identical for existing and unknown accounts."""

    success: bool = True
    email_sent: bool = True
    message: str


class RecoveryCodeResponse(BaseModel):
    """Returned once when a recovery code is generated."""

    success: bool = True
    message: str
    recovery_code: str
    code_hint: str
    expires_at: datetime


class RecoverySessionResponse(AuthSessionResponse):
    must_regenerate_recovery_code: bool = False


class BackupEmailResponse(BaseModel):
    success: bool = True
    message: str
    email: str
    is_verified: bool
