"""
Audit module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class AuditCategory(str, Enum):
    AUTHENTICATION = "authentication"
    SECURITY = "security"
    FAMILY = "family"
    ACCOUNT = "account"
    SYSTEM = "system"


class AuditSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    Append-only security/audit record.

    Events are never updated or deleted by the application.
    """

    id: Optional[str] = None
    event_type: str
    event_category: AuditCategory
    description: str
    actor_user_id: Optional[str] = None
    target_user_id: Optional[str] = None
    target_family_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    event_data: dict[str, Any] = Field(default_factory=dict)
    severity: AuditSeverity = AuditSeverity.MEDIUM
    success: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
