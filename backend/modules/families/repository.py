"""
Family repositories.

Encapsulates storage for the families and family_memberships tables.
"""

import uuid
from typing import Any, Optional

from shared.repository import BaseRepository
from .models import Family, FamilyMembership


class MemoryFamilyRepository:
    """Family storage held in dicts. For testing and development."""

    def __init__(self) -> None:
        self._families: dict[str, Family] = {}
        self._memberships: dict[str, FamilyMembership] = {}

    def create_family(self, data: dict[str, Any]) -> Family:
        family = Family(id=str(uuid.uuid4()), **data)
        self._families[family.id] = family
        return family

    def get_family(self, family_id: str) -> Optional[Family]:
        return self._families.get(family_id)

    def create_membership(self, data: dict[str, Any]) -> FamilyMembership:
        membership = FamilyMembership(id=str(uuid.uuid4()), **data)
        self._memberships[membership.id] = membership
        return membership

    def get_membership(self, user_id: str, family_id: str) -> Optional[FamilyMembership]:
        for membership in self._memberships.values():
            if membership.user_id == user_id and membership.family_id == family_id:
                return membership
        return None

    def list_memberships(self, user_id: str) -> list[FamilyMembership]:
        return [m for m in self._memberships.values() if m.user_id == user_id]

    def set_default_flag(self, membership_id: str, is_default: bool) -> None:
        membership = self._memberships[membership_id]
        self._memberships[membership_id] = membership.model_copy(
            update={"is_default_family": is_default}
        )

    def ping(self) -> bool:
        return True


class SupabaseFamilyRepository(BaseRepository[Family]):
    """
    Repository for families and family_memberships.

    Note: This repository does NOT enforce the one-default-family rule.
    FamilyService is responsible for it.
    """

    # -------------------------------------------------------------------------
    # Families
    # -------------------------------------------------------------------------

    def create_family(self, data: dict[str, Any]) -> Family:
        result = self._db.table("families").insert(data).execute()
        return Family.model_validate(result.data[0])

    def get_family(self, family_id: str) -> Optional[Family]:
        result = self._db.table("families").select("*").eq("id", family_id).execute()
        return self._first(result.data, Family)

    # -------------------------------------------------------------------------
    # Memberships
    # -------------------------------------------------------------------------

    def create_membership(self, data: dict[str, Any]) -> FamilyMembership:
        row = dict(data)
        if hasattr(row.get("role"), "value"):
            row["role"] = row["role"].value
        result = self._db.table("family_memberships").insert(row).execute()
        return FamilyMembership.model_validate(result.data[0])

    def get_membership(self, user_id: str, family_id: str) -> Optional[FamilyMembership]:
        result = (
            self._db.table("family_memberships")
            .select("*")
            .eq("user_id", user_id)
            .eq("family_id", family_id)
            .limit(1)
            .execute()
        )
        return self._first(result.data, FamilyMembership)

    def list_memberships(self, user_id: str) -> list[FamilyMembership]:
        result = (
            self._db.table("family_memberships")
            .select("*")
            .eq("user_id", user_id)
            .eq("status", "active")
            .execute()
        )
        return [FamilyMembership.model_validate(row) for row in result.data or []]

    def set_default_flag(self, membership_id: str, is_default: bool) -> None:
        (
            self._db.table("family_memberships")
            .update({"is_default_family": is_default})
            .eq("id", membership_id)
            .execute()
        )

    def ping(self) -> bool:
        self._db.table("families").select("id").limit(1).execute()
        return True
