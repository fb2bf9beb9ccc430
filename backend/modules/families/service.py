"""
Family service.

Provisions default families at signup, adds invited members, and manages
the invitation lifecycle. Invitations are family_invitation AuthTokens; the
invited role, relationship and inviter live in the token metadata.
"""

import logging
from datetime import timedelta
from typing import Optional

from modules.notifications.interfaces import IEmailSender
from modules.tokens.models import AuthToken, TokenStatus, TokenType
from modules.tokens.service import TokenService
from shared.models import AuthenticatedUser

from .exceptions import (
    FamilyNotFoundError,
    InvitationAccessDeniedError,
    InvitationNotActiveError,
    InvitationNotFoundError,
    NotFamilyMemberError,
)
from .interfaces import IFamilyRepository
from .models import (
    INVITING_ROLES,
    CreateInvitationRequest,
    Family,
    FamilyMembership,
    FamilyRole,
    FamilySummary,
    Invitation,
)

logger = logging.getLogger(__name__)


def default_family_name(
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> str:
    """Name a new user's family after them."""
    if last_name:
        return f"{last_name} Family"
    if first_name:
        return f"{first_name}'s Family"
    return f"{email.split('@')[0]}'s Family"


class FamilyService:
    """Families, memberships and invitations."""

    def __init__(
        self,
        repository: IFamilyRepository,
        tokens: TokenService,
        email: IEmailSender,
        app_url: str,
        invitation_ttl: timedelta = timedelta(days=7),
    ):
        self._repository = repository
        self._tokens = tokens
        self._email = email
        self._app_url = app_url.rstrip("/")
        self._invitation_ttl = invitation_ttl

    # -------------------------------------------------------------------------
    # Families and memberships
    # -------------------------------------------------------------------------

    async def get_family(self, family_id: str) -> Family:
        family = self._repository.get_family(family_id)
        if family is None:
            raise FamilyNotFoundError(family_id)
        return family

    async def get_memberships(self, user_id: str) -> list[FamilyMembership]:
        return self._repository.list_memberships(user_id)

    def _summarize(self, membership: FamilyMembership) -> Optional[FamilySummary]:
        family = self._repository.get_family(membership.family_id)
        if family is None:
            logger.warning(
                f"Membership {membership.id} points at missing family {membership.family_id}"
            )
            return None
        return FamilySummary(
            id=family.id,
            name=family.name,
            timezone=family.timezone,
            role=membership.role,
            relationship=membership.relationship,
            is_default_family=membership.is_default_family,
            is_family_admin=membership.role == FamilyRole.COORDINATOR,
        )

    async def list_families(self, user_id: str) -> list[FamilySummary]:
        """Families the user belongs to, default family first."""
        summaries = [self._summarize(m) for m in self._repository.list_memberships(user_id)]
        families = [s for s in summaries if s is not None]
        return sorted(families, key=lambda s: not s.is_default_family)

    async def provision_default_family(
        self,
        user_id: str,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> FamilyMembership:
        """
        Create a family for a new user with them as sole coordinator.

        Returns:
            The user's membership, flagged as their default family
        """
        family = self._repository.create_family({
            "name": default_family_name(email, first_name, last_name),
            "created_by": user_id,
        })
        logger.info(f"Provisioned family {family.id} for user {user_id}")
        return await self.join_family(user_id, family.id, FamilyRole.COORDINATOR)

    async def join_family(
        self,
        user_id: str,
        family_id: str,
        role: FamilyRole,
        relationship: Optional[str] = None,
        invited_by: Optional[str] = None,
    ) -> FamilyMembership:
        """
        Add a user to a family.

        The membership becomes the user's default when it is their first.
        """
        is_first = not self._repository.list_memberships(user_id)
        return self._repository.create_membership({
            "family_id": family_id,
            "user_id": user_id,
            "role": role,
            "relationship": relationship,
            "is_default_family": is_first,
            "invited_by": invited_by,
        })

    async def set_default_family(self, user_id: str, family_id: str) -> FamilyMembership:
        """
        Make one membership the user's default and clear the others.

        Raises:
            NotFamilyMemberError: If the user is not a member of the family
        """
        memberships = self._repository.list_memberships(user_id)
        target = next((m for m in memberships if m.family_id == family_id), None)
        if target is None:
            raise NotFamilyMemberError(family_id, user_id)

        for membership in memberships:
            if membership.id != target.id and membership.is_default_family:
                self._repository.set_default_flag(membership.id, False)
        if not target.is_default_family:
            self._repository.set_default_flag(target.id, True)
        return target.model_copy(update={"is_default_family": True})

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    def _invitation_link(self, raw_token: str) -> str:
        return f"{self._app_url}/signup?invitation={raw_token}"

    @staticmethod
    def _to_invitation(token: AuthToken) -> Invitation:
        return Invitation(
            id=token.id,
            family_id=token.family_id or "",
            email=token.email,
            role=FamilyRole(token.metadata.get("invited_role", FamilyRole.ADULT.value)),
            relationship=token.metadata.get("relationship"),
            status=token.token_status.value,
            invited_by=token.metadata.get("invited_by"),
            expires_at=token.expires_at,
        )

    async def create_invitation(
        self,
        family_id: str,
        inviter: AuthenticatedUser,
        request: CreateInvitationRequest,
    ) -> Invitation:
        """
        Invite someone to a family by email.

        Raises:
            FamilyNotFoundError: If the family does not exist
            NotFamilyMemberError: If the inviter is not a coordinator of this family
        """
        family = await self.get_family(family_id)
        membership = self._repository.get_membership(inviter.id, family_id)
        if membership is None or membership.role not in INVITING_ROLES:
            raise NotFamilyMemberError(family_id, inviter.id)

        email = str(request.email).strip().lower()
        issued = await self._tokens.issue(
            TokenType.FAMILY_INVITATION,
            self._invitation_ttl,
            email=email,
            family_id=family_id,
            metadata={
                "invited_role": request.role.value,
                "relationship": request.relationship,
                "invited_by": inviter.id,
                "family_name": family.name,
            },
        )
        await self._email.send_invitation(
            email,
            family.name,
            self._invitation_link(issued.raw_token),
            inviter.email,
            expires_in_days=self._invitation_ttl.days,
        )
        return self._to_invitation(issued.token)

    async def list_invitations(self, family_id: str, user: AuthenticatedUser) -> list[Invitation]:
        """
        Pending invitations of a family, newest first.

        Any member may list them.

        Raises:
            FamilyNotFoundError: If the family does not exist
            NotFamilyMemberError: If the user is not a member
        """
        await self.get_family(family_id)
        if self._repository.get_membership(user.id, family_id) is None:
            raise NotFamilyMemberError(family_id, user.id)

        tokens = await self._tokens.list_for_family(family_id, TokenType.FAMILY_INVITATION)
        return [
            self._to_invitation(token) for token in tokens
            if token.token_status == TokenStatus.ACTIVE and not token.is_expired()
        ]

    async def _get_managed_invitation(
        self, invitation_id: str, user: AuthenticatedUser
    ) -> AuthToken:
        token = await self._tokens.get(invitation_id)
        if token is None or token.token_type != TokenType.FAMILY_INVITATION:
            raise InvitationNotFoundError(invitation_id)

        if token.metadata.get("invited_by") != user.id:
            membership = self._repository.get_membership(user.id, token.family_id or "")
            if membership is None or membership.role != FamilyRole.COORDINATOR:
                raise InvitationAccessDeniedError(invitation_id, user.id)
        return token

    async def cancel_invitation(self, invitation_id: str, user: AuthenticatedUser) -> None:
        """Revoke a pending invitation."""
        token = await self._get_managed_invitation(invitation_id, user)
        if token.token_status != TokenStatus.ACTIVE:
            raise InvitationNotActiveError(invitation_id, token.token_status.value)
        await self._tokens.revoke(invitation_id)

    async def resend_invitation(self, invitation_id: str, user: AuthenticatedUser) -> Invitation:
        """
        Re-send an invitation with a fresh link and expiry.

        Expired invitations may be resent; accepted or cancelled ones may not.
        """
        token = await self._get_managed_invitation(invitation_id, user)
        if token.token_status in (TokenStatus.USED, TokenStatus.REVOKED):
            raise InvitationNotActiveError(invitation_id, token.token_status.value)

        issued = await self._tokens.rotate(invitation_id, self._invitation_ttl)
        family_name = token.metadata.get("family_name") or "your family"
        await self._email.send_invitation(
            token.email or "",
            family_name,
            self._invitation_link(issued.raw_token),
            user.email,
            expires_in_days=self._invitation_ttl.days,
        )
        return self._to_invitation(issued.token)
