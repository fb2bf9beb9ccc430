"""
Token module interface.

The token service depends on ITokenRepository so the same lifecycle rules
run against Supabase in production and an in-memory store in tests.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import AuthToken, TokenStatus, TokenType


@runtime_checkable
class ITokenRepository(Protocol):
    """Persistence contract for AuthToken rows."""

    def create(self, data: dict[str, Any]) -> AuthToken:
        """Insert a token row and return it with generated fields."""
        ...

    def get_by_id(self, token_id: str) -> Optional[AuthToken]:
        ...

    def get_by_hash(self, token_hash: str, token_type: TokenType) -> Optional[AuthToken]:
        ...

    def list_by_family(self, family_id: str, token_type: TokenType) -> list[AuthToken]:
        """Tokens of one type scoped to a family, newest first."""
        ...

    def set_status(self, token_id: str, status: TokenStatus) -> None:
        ...

    def claim_use(
        self,
        token_id: str,
        expected_uses: int,
        status: TokenStatus,
    ) -> Optional[AuthToken]:
        """
        Increment uses_count only if it still equals ``expected_uses``.

        Returns:
            The updated row, or None when another request claimed it first
        """
        ...

    def replace_hash(
        self,
        token_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> Optional[AuthToken]:
        """Swap in a new hash and expiry, re-activating the token."""
        ...
