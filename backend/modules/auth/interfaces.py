"""
Authentication module interfaces.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import UserProfile


@runtime_checkable
class IProfileRepository(Protocol):
    """Persistence contract for the user_profiles table."""

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    def create_profile(self, data: dict[str, Any]) -> UserProfile:
        ...
