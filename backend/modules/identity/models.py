"""
Identity provider data models.

These are provider-neutral views of the user and session records owned by
the external identity service.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class IdentityUser(BaseModel):
    """User record owned by the identity provider."""

    id: str
    email: str
    email_confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


class IssuedSession(BaseModel):
    """Session tokens returned to the client."""

    access_token: str = Field(..., repr=False)
    refresh_token: str = Field(..., repr=False)
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Seconds until the access token expires")
    expires_at: int = Field(..., description="Access token expiry (Unix timestamp)")
    user: Optional[IdentityUser] = None


class AuthSessionResponse(BaseModel):
    """Response body for every flow that signs the user in."""

    success: bool = True
    message: str
    user: Optional[IdentityUser] = None
    session: Optional[IssuedSession] = None
