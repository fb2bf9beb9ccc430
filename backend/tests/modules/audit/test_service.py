"""Tests for the audit logger."""

import pytest
from unittest.mock import MagicMock

from modules.audit.models import AuditCategory, AuditSeverity
from modules.audit.service import REDACTED, AuditLogger, redact
from modules.audit.store import MemoryAuditStore
from shared.models import SecurityContext


class TestRedact:
    def test_secret_keys_redacted(self):
        data = redact({"email": "a@example.com", "recovery_code": "ABCDE-12345", "token": "t"})
        assert data == {"email": "a@example.com", "recovery_code": REDACTED, "token": REDACTED}

    def test_nested_dicts(self):
        data = redact({"request": {"code": "123456", "type": "signup"}})
        assert data == {"request": {"code": REDACTED, "type": "signup"}}

    def test_none_values_left_alone(self):
        assert redact({"token": None}) == {"token": None}


class TestAuditLogger:
    @pytest.mark.asyncio
    async def test_log_appends_event(self):
        store = MemoryAuditStore()
        logger = AuditLogger(store)
        context = SecurityContext(ip_address="203.0.113.9", user_agent="pytest")

        event = await logger.log(
            "user_signup",
            AuditCategory.AUTHENTICATION,
            "New user account created",
            context=context,
            actor_user_id="user-1",
            event_data={"email": "a@example.com", "refresh_token": "secret"},
        )

        assert store.events == [event]
        assert event.ip_address == "203.0.113.9"
        assert event.user_agent == "pytest"
        assert event.severity == AuditSeverity.MEDIUM
        assert event.event_data["refresh_token"] == REDACTED
        assert store.last() is event
        assert store.find("user_signup") == [event]

    @pytest.mark.asyncio
    async def test_store_failure_does_not_raise(self):
        store = MagicMock()
        store.append.side_effect = ConnectionError("down")

        event = await AuditLogger(store).log("x", AuditCategory.SYSTEM, "x")

        assert event is None
