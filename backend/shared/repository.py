"""
Base repository class for database access.

Provides a common abstraction layer for all Supabase-backed repositories,
encapsulating client access and the row helpers they share.
"""

from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all Supabase repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints
    - Helpers for the insert/select result shape returned by postgrest

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class FamilyRepository(BaseRepository[Family]):
            def get_family(self, family_id: str) -> Optional[Family]:
                result = self._db.table("families").select("*").eq("id", family_id).execute()
                return self._first(result.data, Family)
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def _first(rows: Optional[list[dict[str, Any]]], model: type[T]) -> Optional[T]:
        """Map the first row of a result to a model, or None when empty."""
        if not rows:
            return None
        return model.model_validate(rows[0])  # type: ignore[attr-defined]

    @staticmethod
    def _now_iso() -> str:
        """Current UTC time in the ISO format postgrest expects."""
        return datetime.now(timezone.utc).isoformat()
