"""
AuthToken repositories.

Encapsulates storage for the auth_tokens table. The in-memory repository
is used for tests and local development; SupabaseTokenRepository is used
in production.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from shared.repository import BaseRepository
from .models import AuthToken, TokenStatus, TokenType

TABLE = "auth_tokens"


class MemoryTokenRepository:
    """AuthToken storage held in a dict. For testing and development."""

    def __init__(self) -> None:
        self._tokens: dict[str, AuthToken] = {}

    def create(self, data: dict[str, Any]) -> AuthToken:
        token = AuthToken(id=str(uuid.uuid4()), **data)
        self._tokens[token.id] = token
        return token

    def get_by_id(self, token_id: str) -> Optional[AuthToken]:
        return self._tokens.get(token_id)

    def get_by_hash(self, token_hash: str, token_type: TokenType) -> Optional[AuthToken]:
        for token in self._tokens.values():
            if token.token_hash == token_hash and token.token_type == token_type:
                return token
        return None

    def list_by_family(self, family_id: str, token_type: TokenType) -> list[AuthToken]:
        tokens = [
            t for t in self._tokens.values()
            if t.family_id == family_id and t.token_type == token_type
        ]
        return sorted(tokens, key=lambda t: t.created_at, reverse=True)

    def set_status(self, token_id: str, status: TokenStatus) -> None:
        token = self._tokens.get(token_id)
        if token:
            self._tokens[token_id] = token.model_copy(
                update={"token_status": status, "updated_at": datetime.now(timezone.utc)}
            )

    def claim_use(
        self,
        token_id: str,
        expected_uses: int,
        status: TokenStatus,
    ) -> Optional[AuthToken]:
        token = self._tokens.get(token_id)
        if token is None or token.uses_count != expected_uses:
            return None
        claimed = token.model_copy(
            update={
                "uses_count": expected_uses + 1,
                "token_status": status,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self._tokens[token_id] = claimed
        return claimed

    def replace_hash(
        self,
        token_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> Optional[AuthToken]:
        token = self._tokens.get(token_id)
        if token is None:
            return None
        rotated = token.model_copy(
            update={
                "token_hash": token_hash,
                "expires_at": expires_at,
                "token_status": TokenStatus.ACTIVE,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self._tokens[token_id] = rotated
        return rotated


class SupabaseTokenRepository(BaseRepository[AuthToken]):
    """
    Repository for the auth_tokens table.

    Note: This repository does NOT perform lifecycle checks.
    TokenService is responsible for expiry and use-count rules.
    """

    def create(self, data: dict[str, Any]) -> AuthToken:
        row = dict(data)
        row["expires_at"] = row["expires_at"].isoformat()
        for key in ("token_type", "token_status"):
            if key in row and hasattr(row[key], "value"):
                row[key] = row[key].value
        result = self._db.table(TABLE).insert(row).execute()
        return AuthToken.model_validate(result.data[0])

    def get_by_id(self, token_id: str) -> Optional[AuthToken]:
        result = self._db.table(TABLE).select("*").eq("id", token_id).execute()
        return self._first(result.data, AuthToken)

    def get_by_hash(self, token_hash: str, token_type: TokenType) -> Optional[AuthToken]:
        result = (
            self._db.table(TABLE)
            .select("*")
            .eq("token_hash", token_hash)
            .eq("token_type", token_type.value)
            .limit(1)
            .execute()
        )
        return self._first(result.data, AuthToken)

    def list_by_family(self, family_id: str, token_type: TokenType) -> list[AuthToken]:
        result = (
            self._db.table(TABLE)
            .select("*")
            .eq("family_id", family_id)
            .eq("token_type", token_type.value)
            .order("created_at", desc=True)
            .execute()
        )
        return [AuthToken.model_validate(row) for row in result.data or []]

    def set_status(self, token_id: str, status: TokenStatus) -> None:
        (
            self._db.table(TABLE)
            .update({"token_status": status.value, "updated_at": self._now_iso()})
            .eq("id", token_id)
            .execute()
        )

    def claim_use(
        self,
        token_id: str,
        expected_uses: int,
        status: TokenStatus,
    ) -> Optional[AuthToken]:
        result = (
            self._db.table(TABLE)
            .update({
                "uses_count": expected_uses + 1,
                "token_status": status.value,
                "updated_at": self._now_iso(),
            })
            .eq("id", token_id)
            .eq("uses_count", expected_uses)
            .execute()
        )
        return self._first(result.data, AuthToken)

    def replace_hash(
        self,
        token_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> Optional[AuthToken]:
        result = (
            self._db.table(TABLE)
            .update({
                "token_hash": token_hash,
                "expires_at": expires_at.isoformat(),
                "token_status": TokenStatus.ACTIVE.value,
                "updated_at": self._now_iso(),
            })
            .eq("id", token_id)
            .execute()
        )
        return self._first(result.data, AuthToken)
