"""
AuthToken lifecycle service.

Issues emailed tokens, validates them and claims single uses. Consumption is
a conditional update on ``uses_count`` so two concurrent redemptions of the
same token cannot both succeed.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .exceptions import InvalidTokenError, TokenNotFoundError
from .generator import generate_secure_token, hash_token
from .interfaces import ITokenRepository
from .models import AuthToken, IssuedToken, TokenStatus, TokenType

logger = logging.getLogger(__name__)


class TokenService:
    """Single- and multi-use emailed tokens."""

    def __init__(self, repository: ITokenRepository):
        self._repository = repository

    async def issue(
        self,
        token_type: TokenType,
        ttl: timedelta,
        *,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        family_id: Optional[str] = None,
        max_uses: int = 1,
        metadata: Optional[dict[str, Any]] = None,
    ) -> IssuedToken:
        """
        Create a token and store its hash.

        Args:
            token_type: Kind of token being issued
            ttl: Lifetime from now
            email: Email the token is bound to, if any
            user_id: Owning user, if known
            family_id: Family the token grants access to, if any
            max_uses: Number of redemptions allowed
            metadata: Free-form data stored alongside the token

        Returns:
            IssuedToken carrying the raw token (to be emailed) and the stored row
        """
        raw = generate_secure_token()
        token = self._repository.create({
            "token_hash": hash_token(raw),
            "token_type": token_type,
            "token_status": TokenStatus.ACTIVE,
            "user_id": user_id,
            "email": email,
            "family_id": family_id,
            "expires_at": datetime.now(timezone.utc) + ttl,
            "max_uses": max_uses,
            "uses_count": 0,
            "metadata": metadata or {},
        })
        logger.info(f"Issued {token_type.value} token {token.id}")
        return IssuedToken(raw_token=raw, token=token)

    async def inspect(self, raw_token: str, token_type: TokenType) -> AuthToken:
        """
        Validate a raw token without consuming it.

        Raises:
            InvalidTokenError: If the token is unknown, revoked, used up or expired
        """
        token = self._repository.get_by_hash(hash_token(raw_token), token_type)
        if token is None:
            raise InvalidTokenError("invalid", token_type.value)

        if token.token_status == TokenStatus.REVOKED:
            raise InvalidTokenError("revoked", token_type.value)
        if token.token_status == TokenStatus.USED or token.uses_count >= token.max_uses:
            raise InvalidTokenError(
                "already_used", token_type.value, "Token has already been used"
            )
        if token.token_status == TokenStatus.EXPIRED or token.is_expired():
            if token.token_status != TokenStatus.EXPIRED:
                self._repository.set_status(token.id, TokenStatus.EXPIRED)
            raise InvalidTokenError(
                "expired", token_type.value, "Token has expired", code="TOKEN_EXPIRED"
            )

        return token

    async def consume(self, token: AuthToken) -> AuthToken:
        """
        Claim one use of an inspected token.

        Raises:
            InvalidTokenError: If another request consumed the token first
        """
        new_uses = token.uses_count + 1
        status = TokenStatus.USED if new_uses >= token.max_uses else TokenStatus.ACTIVE
        claimed = self._repository.claim_use(token.id, token.uses_count, status)
        if claimed is None:
            raise InvalidTokenError(
                "already_used", token.token_type.value, "Token has already been used"
            )
        return claimed

    async def redeem(self, raw_token: str, token_type: TokenType) -> AuthToken:
        """Inspect and consume in one step."""
        token = await self.inspect(raw_token, token_type)
        return await self.consume(token)

    async def get(self, token_id: str) -> Optional[AuthToken]:
        return self._repository.get_by_id(token_id)

    async def list_for_family(self, family_id: str, token_type: TokenType) -> list[AuthToken]:
        return self._repository.list_by_family(family_id, token_type)

    async def revoke(self, token_id: str) -> None:
        """Revoke a token so it can no longer be redeemed."""
        if self._repository.get_by_id(token_id) is None:
            raise TokenNotFoundError(token_id)
        self._repository.set_status(token_id, TokenStatus.REVOKED)
        logger.info(f"Revoked token {token_id}")

    async def rotate(self, token_id: str, ttl: timedelta) -> IssuedToken:
        """
        Replace a token's secret and extend its expiry.

        The previous raw token stops working. Used when a link has to be
        re-sent, since the original raw value was never stored.
        """
        raw = generate_secure_token()
        token = self._repository.replace_hash(
            token_id,
            hash_token(raw),
            datetime.now(timezone.utc) + ttl,
        )
        if token is None:
            raise TokenNotFoundError(token_id)
        return IssuedToken(raw_token=raw, token=token)
