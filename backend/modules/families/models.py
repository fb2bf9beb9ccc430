"""
Families module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class FamilyRole(str, Enum):
    """Roles a member can hold within a family."""

    COORDINATOR = "coordinator"
    ADULT = "adult"
    TEEN = "teen"
    CHILD = "child"
    CAREGIVER = "caregiver"


# Roles allowed to invite new members
INVITING_ROLES = frozenset({FamilyRole.COORDINATOR})


class Family(BaseModel):
    """A family (tenant) grouping users."""

    id: str
    name: str
    timezone: str = "UTC"
    subscription_tier: str = "free"
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FamilyMembership(BaseModel):
    """
    Link between a user and a family.

    Exactly one membership per user has ``is_default_family`` set; the
    service layer maintains this.
    """

    id: str
    family_id: str
    user_id: str
    role: FamilyRole
    relationship: Optional[str] = None
    is_default_family: bool = False
    status: str = "active"
    invited_by: Optional[str] = None
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CreateInvitationRequest(BaseModel):
    """Request to invite someone to a family."""

    email: EmailStr
    role: FamilyRole = FamilyRole.ADULT
    relationship: Optional[str] = Field(None, max_length=50)


class Invitation(BaseModel):
    """Public view of a family invitation (never includes the token)."""

    id: str
    family_id: str
    email: Optional[str] = None
    role: FamilyRole
    relationship: Optional[str] = None
    status: str
    invited_by: Optional[str] = None
    expires_at: datetime


class InvitationActionResponse(BaseModel):
    success: bool = True
    message: str


class InvitationListResponse(BaseModel):
    success: bool = True
    invitations: list[Invitation]


class FamilySummary(BaseModel):
    """A family as seen by one of its members."""

    id: str
    name: str
    timezone: str
    role: FamilyRole
    relationship: Optional[str] = None
    is_default_family: bool = False
    is_family_admin: bool = False


class FamilyListResponse(BaseModel):
    success: bool = True
    families: list[FamilySummary]


class DefaultFamilyResponse(BaseModel):
    success: bool = True
    message: str = "Default family updated"
    family: FamilySummary
