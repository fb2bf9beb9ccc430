"""
Family and invitation API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_family_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser

from .models import (
    CreateInvitationRequest,
    DefaultFamilyResponse,
    FamilyListResponse,
    Invitation,
    InvitationActionResponse,
    InvitationListResponse,
)
from .service import FamilyService

router = APIRouter()
invitations_router = APIRouter()


@router.get("", response_model=FamilyListResponse)
async def list_families(
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> FamilyListResponse:
    """List the caller's families, default family first."""
    return FamilyListResponse(families=await service.list_families(user.id))


@router.put("/{family_id}/default", response_model=DefaultFamilyResponse)
async def set_default_family(
    family_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> DefaultFamilyResponse:
    """Make a family the caller's default. Any other default is cleared."""
    await service.set_default_family(user.id, family_id)
    families = await service.list_families(user.id)
    return DefaultFamilyResponse(family=next(f for f in families if f.id == family_id))


@router.get("/{family_id}/invitations", response_model=InvitationListResponse)
async def list_invitations(
    family_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> InvitationListResponse:
    """List a family's pending invitations. Any member may view them."""
    return InvitationListResponse(invitations=await service.list_invitations(family_id, user))


@router.post("/{family_id}/invitations", response_model=Invitation, status_code=201)
async def create_invitation(
    family_id: str,
    request: CreateInvitationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> Invitation:
    """
    Invite someone to join a family.

    Only coordinators of the family may invite.
    """
    return await service.create_invitation(family_id, user, request)


@invitations_router.delete("/{invitation_id}", response_model=InvitationActionResponse)
async def cancel_invitation(
    invitation_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> InvitationActionResponse:
    """Cancel a pending invitation."""
    await service.cancel_invitation(invitation_id, user)
    return InvitationActionResponse(message="Invitation cancelled")


@invitations_router.post("/{invitation_id}/resend", response_model=InvitationActionResponse)
async def resend_invitation(
    invitation_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: FamilyService = Depends(get_family_service),
) -> InvitationActionResponse:
    """Re-send an invitation email with a fresh link."""
    await service.resend_invitation(invitation_id, user)
    return InvitationActionResponse(message="Invitation resent successfully")
