"""
Families module.

Handles families, memberships and family invitations.

Public API:
- FamilyService: Provisioning, memberships and invitations
- IFamilyRepository: Storage interface
- Family, FamilyMembership, FamilyRole, Invitation: Models
"""

from .exceptions import (
    FamilyNotFoundError,
    InvitationAccessDeniedError,
    InvitationNotActiveError,
    InvitationNotFoundError,
    NotFamilyMemberError,
)
from .interfaces import IFamilyRepository
from .models import (
    CreateInvitationRequest,
    Family,
    FamilyMembership,
    FamilyRole,
    FamilySummary,
    Invitation,
    InvitationActionResponse,
)
from .repository import MemoryFamilyRepository, SupabaseFamilyRepository
from .service import FamilyService, default_family_name

__all__ = [
    # Interfaces
    "IFamilyRepository",
    # Models
    "CreateInvitationRequest",
    "Family",
    "FamilyMembership",
    "FamilyRole",
    "FamilySummary",
    "Invitation",
    "InvitationActionResponse",
    # Exceptions
    "FamilyNotFoundError",
    "InvitationAccessDeniedError",
    "InvitationNotActiveError",
    "InvitationNotFoundError",
    "NotFamilyMemberError",
    # Storage
    "MemoryFamilyRepository",
    "SupabaseFamilyRepository",
    # Service
    "FamilyService",
    "default_family_name",
]
