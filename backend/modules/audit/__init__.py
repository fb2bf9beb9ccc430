"""
Audit logging module.

Public API:
- AuditLogger: Structured security event logging
- IAuditStore: Storage interface (memory and Supabase implementations)
"""

from .models import AuditCategory, AuditEvent, AuditSeverity
from .service import AuditLogger, redact
from .store import IAuditStore, MemoryAuditStore, SupabaseAuditStore

__all__ = [
    "AuditCategory",
    "AuditEvent",
    "AuditSeverity",
    "AuditLogger",
    "redact",
    "IAuditStore",
    "MemoryAuditStore",
    "SupabaseAuditStore",
]
