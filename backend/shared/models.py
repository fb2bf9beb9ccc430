"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from JWT claims and made available
    to route handlers via dependency injection.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: EmailStr = Field(..., description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    # Timestamps (optional for backward compatibility)
    created_at: Optional[datetime] = Field(None, description="Account creation time")
    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")
    session_expires_at: Optional[datetime] = Field(None, description="Access token expiry")

    # Raw bearer token, needed to revoke the session on logout
    access_token: Optional[str] = Field(None, repr=False, exclude=True)

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra fields from JWT
    }


class SecurityContext(BaseModel):
    """
    Network details of the request being handled.

    Passed into services so rate limiting and audit logging can
    attribute attempts without depending on the web framework.
    """

    ip_address: str = "unknown"
    user_agent: str = "unknown"

    model_config = {"frozen": True}
