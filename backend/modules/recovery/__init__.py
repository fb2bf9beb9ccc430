"""
Account recovery module.

Public API:
- RecoveryService: Recovery codes, backup-email codes and sign-in links
- IRecoveryRepository: Storage interface
"""

from .exceptions import BackupEmailConflictError, BackupEmailNotFoundError, InvalidRecoveryError
from .interfaces import IRecoveryRepository
from .models import (
    BackupEmail,
    EmailSentResponse,
    RecoveryCode,
    RecoveryCodeResponse,
    RecoverySessionResponse,
)
from .repository import MemoryRecoveryRepository, SupabaseRecoveryRepository
from .service import RecoveryService

__all__ = [
    "BackupEmailConflictError",
    "BackupEmailNotFoundError",
    "InvalidRecoveryError",
    "IRecoveryRepository",
    "BackupEmail",
    "EmailSentResponse",
    "RecoveryCode",
    "RecoveryCodeResponse",
    "RecoverySessionResponse",
    "MemoryRecoveryRepository",
    "SupabaseRecoveryRepository",
    "RecoveryService",
]
