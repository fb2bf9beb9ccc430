"""
Families module exceptions.
"""

from shared.exceptions import AuthorizationError, NotFoundError, ValidationError


class FamilyNotFoundError(NotFoundError):
    """Raised when a family is not found."""

    def __init__(self, family_id: str):
        super().__init__(
            f"Family not found: {family_id}",
            code="FAMILY_NOT_FOUND",
            details={"family_id": family_id},
        )


class NotFamilyMemberError(AuthorizationError):
    """Raised when a user lacks the membership an action requires."""

    def __init__(self, family_id: str, user_id: str):
        super().__init__(
            "You do not have permission to manage this family",
            code="FAMILY_ACCESS_DENIED",
            details={"family_id": family_id, "user_id": user_id},
        )


class InvitationNotFoundError(NotFoundError):
    """Raised when an invitation is not found."""

    def __init__(self, invitation_id: str):
        super().__init__(
            f"Invitation not found: {invitation_id}",
            code="INVITATION_NOT_FOUND",
            details={"invitation_id": invitation_id},
        )


class InvitationAccessDeniedError(AuthorizationError):
    """Raised when a user may not manage an invitation."""

    def __init__(self, invitation_id: str, user_id: str):
        super().__init__(
            "You do not have permission to manage this invitation",
            code="INVITATION_ACCESS_DENIED",
            details={"invitation_id": invitation_id, "user_id": user_id},
        )


class InvitationNotActiveError(ValidationError):
    """Raised when an invitation was already accepted or cancelled."""

    def __init__(self, invitation_id: str, status: str):
        super().__init__(
            f"Invitation is no longer active: {invitation_id}",
            code="INVITATION_NOT_ACTIVE",
            details={"invitation_id": invitation_id, "status": status},
        )
