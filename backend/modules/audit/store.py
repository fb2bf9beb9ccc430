"""
Audit event stores.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.repository import BaseRepository
from .models import AuditEvent


@runtime_checkable
class IAuditStore(Protocol):
    """Append-only event store."""

    def append(self, event: AuditEvent) -> None:
        ...


class MemoryAuditStore:
    """In-memory audit log. For testing and development."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def append(self, event: AuditEvent) -> None:
        self.events.append(event)

    def find(self, event_type: str) -> list[AuditEvent]:
        """Events of one type, oldest first."""
        return [e for e in self.events if e.event_type == event_type]

    def last(self) -> Optional[AuditEvent]:
        return self.events[-1] if self.events else None


class SupabaseAuditStore(BaseRepository[AuditEvent]):
    """Audit log persisted to the audit_logs table."""

    def append(self, event: AuditEvent) -> None:
        row = event.model_dump(mode="json", exclude={"id"})
        self._db.table("audit_logs").insert(row).execute()
