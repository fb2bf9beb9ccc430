"""
Families module interfaces.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import Family, FamilyMembership


@runtime_checkable
class IFamilyRepository(Protocol):
    """Persistence contract for families and memberships."""

    def create_family(self, data: dict[str, Any]) -> Family:
        ...

    def get_family(self, family_id: str) -> Optional[Family]:
        ...

    def create_membership(self, data: dict[str, Any]) -> FamilyMembership:
        ...

    def get_membership(self, user_id: str, family_id: str) -> Optional[FamilyMembership]:
        ...

    def list_memberships(self, user_id: str) -> list[FamilyMembership]:
        ...

    def set_default_flag(self, membership_id: str, is_default: bool) -> None:
        ...

    def ping(self) -> bool:
        """Cheap query used by the health check."""
        ...
