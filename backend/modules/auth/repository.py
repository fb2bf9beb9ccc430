"""
User profile repositories.
"""

from typing import Any, Optional

from shared.repository import BaseRepository
from .models import UserProfile


class MemoryProfileRepository:
    """Profiles held in a dict. For testing and development."""

    def __init__(self) -> None:
        self.profiles: dict[str, UserProfile] = {}

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.profiles.get(user_id)

    def create_profile(self, data: dict[str, Any]) -> UserProfile:
        profile = UserProfile(**data)
        self.profiles[profile.id] = profile
        return profile


class SupabaseProfileRepository(BaseRepository[UserProfile]):
    """Repository for the user_profiles table."""

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        result = self._db.table("user_profiles").select("*").eq("id", user_id).execute()
        return self._first(result.data, UserProfile)

    def create_profile(self, data: dict[str, Any]) -> UserProfile:
        result = self._db.table("user_profiles").insert(data).execute()
        return UserProfile.model_validate(result.data[0])
