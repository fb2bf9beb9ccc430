"""Tests for the token lifecycle service."""

import pytest
from datetime import timedelta

from modules.tokens.exceptions import InvalidTokenError, TokenNotFoundError
from modules.tokens.generator import hash_token
from modules.tokens.models import TokenStatus, TokenType
from modules.tokens.repository import MemoryTokenRepository
from modules.tokens.service import TokenService


@pytest.fixture
def repository():
    return MemoryTokenRepository()


@pytest.fixture
def service(repository):
    return TokenService(repository)


class TestIssue:
    @pytest.mark.asyncio
    async def test_only_hash_is_stored(self, service):
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(minutes=15), email="a@example.com")

        assert issued.token.token_hash == hash_token(issued.raw_token)
        assert issued.raw_token not in issued.token.model_dump_json()
        assert issued.token.token_status == TokenStatus.ACTIVE
        assert issued.token.uses_count == 0

    @pytest.mark.asyncio
    async def test_raw_token_not_in_repr(self, service):
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(minutes=15))
        assert issued.raw_token not in repr(issued)


class TestInspect:
    @pytest.mark.asyncio
    async def test_valid_token(self, service):
        issued = await service.issue(TokenType.FAMILY_INVITATION, timedelta(days=7), family_id="fam-1")
        token = await service.inspect(issued.raw_token, TokenType.FAMILY_INVITATION)
        assert token.id == issued.token.id

    @pytest.mark.asyncio
    async def test_unknown_token(self, service):
        with pytest.raises(InvalidTokenError) as exc_info:
            await service.inspect("nope", TokenType.MAGIC_LINK)
        assert exc_info.value.reason == "invalid"

    @pytest.mark.asyncio
    async def test_wrong_type(self, service):
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(minutes=15))
        with pytest.raises(InvalidTokenError):
            await service.inspect(issued.raw_token, TokenType.FAMILY_INVITATION)

    @pytest.mark.asyncio
    async def test_expired_token_is_marked(self, service, repository):
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError) as exc_info:
            await service.inspect(issued.raw_token, TokenType.MAGIC_LINK)

        assert exc_info.value.reason == "expired"
        assert exc_info.value.code == "TOKEN_EXPIRED"
        assert repository.get_by_id(issued.token.id).token_status == TokenStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_revoked_token(self, service):
        issued = await service.issue(TokenType.FAMILY_INVITATION, timedelta(days=7))
        await service.revoke(issued.token.id)

        with pytest.raises(InvalidTokenError) as exc_info:
            await service.inspect(issued.raw_token, TokenType.FAMILY_INVITATION)
        assert exc_info.value.reason == "revoked"


class TestConsume:
    @pytest.mark.asyncio
    async def test_single_use(self, service):
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(minutes=15))

        token = await service.redeem(issued.raw_token, TokenType.MAGIC_LINK)
        assert token.token_status == TokenStatus.USED
        assert token.uses_count == 1

        with pytest.raises(InvalidTokenError) as exc_info:
            await service.redeem(issued.raw_token, TokenType.MAGIC_LINK)
        assert exc_info.value.reason == "already_used"

    @pytest.mark.asyncio
    async def test_concurrent_claims_only_one_wins(self, service):
        """Two requests that both inspected the token cannot both consume it."""
        issued = await service.issue(TokenType.MAGIC_LINK, timedelta(minutes=15))
        first = await service.inspect(issued.raw_token, TokenType.MAGIC_LINK)
        second = await service.inspect(issued.raw_token, TokenType.MAGIC_LINK)

        await service.consume(first)
        with pytest.raises(InvalidTokenError):
            await service.consume(second)

    @pytest.mark.asyncio
    async def test_multi_use_stays_active(self, service):
        issued = await service.issue(TokenType.FAMILY_INVITATION, timedelta(days=7), max_uses=2)

        token = await service.redeem(issued.raw_token, TokenType.FAMILY_INVITATION)
        assert token.token_status == TokenStatus.ACTIVE
        assert token.uses_remaining == 1

        token = await service.redeem(issued.raw_token, TokenType.FAMILY_INVITATION)
        assert token.token_status == TokenStatus.USED


class TestRotate:
    @pytest.mark.asyncio
    async def test_old_raw_token_stops_working(self, service):
        issued = await service.issue(TokenType.FAMILY_INVITATION, timedelta(days=7))
        rotated = await service.rotate(issued.token.id, timedelta(days=7))

        assert rotated.raw_token != issued.raw_token
        with pytest.raises(InvalidTokenError):
            await service.inspect(issued.raw_token, TokenType.FAMILY_INVITATION)
        token = await service.inspect(rotated.raw_token, TokenType.FAMILY_INVITATION)
        assert token.id == issued.token.id

    @pytest.mark.asyncio
    async def test_unknown_token_id(self, service):
        with pytest.raises(TokenNotFoundError):
            await service.rotate("missing", timedelta(days=1))
        with pytest.raises(TokenNotFoundError):
            await service.revoke("missing")
