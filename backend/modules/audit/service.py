"""
Audit logger.

Writes structured security events. Audit logging must never break the
request it describes, so store failures are logged and dropped here.
"""

import logging
from typing import Any, Optional

from shared.models import SecurityContext
from .models import AuditCategory, AuditEvent, AuditSeverity
from .store import IAuditStore

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# event_data keys whose values are secrets
SENSITIVE_KEYS = frozenset({
    "recovery_code",
    "code",
    "verification_code",
    "token",
    "invitation_token",
    "family_invitation_token",
    "refresh_token",
    "access_token",
})


def redact(data: dict[str, Any]) -> dict[str, Any]:
    """Replace secret values in event data, recursing into nested dicts."""
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if key in SENSITIVE_KEYS and value is not None:
            cleaned[key] = REDACTED
        elif isinstance(value, dict):
            cleaned[key] = redact(value)
        else:
            cleaned[key] = value
    return cleaned


class AuditLogger:
    """Appends AuditEvents to a store."""

    def __init__(self, store: IAuditStore):
        self._store = store

    async def log(
        self,
        event_type: str,
        category: AuditCategory,
        description: str,
        *,
        context: Optional[SecurityContext] = None,
        actor_user_id: Optional[str] = None,
        target_user_id: Optional[str] = None,
        target_family_id: Optional[str] = None,
        event_data: Optional[dict[str, Any]] = None,
        severity: AuditSeverity = AuditSeverity.MEDIUM,
        success: bool = True,
    ) -> Optional[AuditEvent]:
        """
        Record an audit event.

        Args:
            event_type: Machine name of the event (e.g. ``user_signup``)
            category: Event category
            description: Human-readable summary
            context: Request IP and user agent
            actor_user_id: User who performed the action
            target_user_id: User the action applied to
            target_family_id: Family the action applied to
            event_data: Extra structured data; secrets are redacted
            severity: Event severity
            success: Whether the audited action succeeded

        Returns:
            The stored event, or None if it could not be written
        """
        event = AuditEvent(
            event_type=event_type,
            event_category=category,
            description=description,
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
            target_family_id=target_family_id,
            ip_address=context.ip_address if context else None,
            user_agent=context.user_agent if context else None,
            event_data=redact(event_data or {}),
            severity=severity,
            success=success,
        )
        try:
            self._store.append(event)
        except Exception:
            logger.exception(f"Failed to write audit event {event_type}")
            return None
        return event
