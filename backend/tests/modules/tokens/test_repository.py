"""Tests for the Supabase token repository query shapes."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from modules.tokens.models import TokenStatus
from modules.tokens.repository import SupabaseTokenRepository


def token_row(**overrides):
    row = {
        "id": "tok-1",
        "token_hash": "abc",
        "token_type": "magic_link",
        "token_status": "used",
        "expires_at": datetime.now(timezone.utc).isoformat(),
        "uses_count": 1,
    }
    row.update(overrides)
    return row


class TestSupabaseTokenRepository:
    def test_claim_use_is_conditional_on_use_count(self):
        db = MagicMock()
        chain = db.table.return_value.update.return_value
        chain.eq.return_value.eq.return_value.execute.return_value.data = [token_row()]
        repo = SupabaseTokenRepository(db)

        claimed = repo.claim_use("tok-1", 0, TokenStatus.USED)

        assert claimed.uses_count == 1
        db.table.assert_called_with("auth_tokens")
        chain.eq.assert_called_with("id", "tok-1")
        chain.eq.return_value.eq.assert_called_with("uses_count", 0)

    def test_claim_use_lost_race_returns_none(self):
        db = MagicMock()
        chain = db.table.return_value.update.return_value
        chain.eq.return_value.eq.return_value.execute.return_value.data = []
        repo = SupabaseTokenRepository(db)

        assert repo.claim_use("tok-1", 0, TokenStatus.USED) is None
