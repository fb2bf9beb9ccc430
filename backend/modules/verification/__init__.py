"""
Email verification module.

Six-digit one-time codes sent by email: signup verification, passwordless
login and backup-email recovery.

Public API:
- VerificationService: Issue and consume codes
- IVerificationRepository: Storage interface
"""

from .exceptions import (
    AlreadyVerifiedError,
    CodeExpiredError,
    InvalidCodeError,
    VerificationError,
)
from .interfaces import IVerificationRepository
from .models import EmailVerification, VerificationType
from .repository import MemoryVerificationRepository, SupabaseVerificationRepository
from .service import VerificationService

__all__ = [
    "AlreadyVerifiedError",
    "CodeExpiredError",
    "InvalidCodeError",
    "VerificationError",
    "IVerificationRepository",
    "EmailVerification",
    "VerificationType",
    "MemoryVerificationRepository",
    "SupabaseVerificationRepository",
    "VerificationService",
]
