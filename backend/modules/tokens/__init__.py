"""
Token module.

Secure code generation and the AuthToken lifecycle for emailed links.

Public API:
- TokenService: Issue, inspect, consume, revoke and rotate tokens
- ITokenRepository: Storage interface
- generate_* / hash_token: Code and token generation helpers
"""

from .exceptions import InvalidTokenError, TokenNotFoundError
from .generator import (
    code_hint,
    constant_time_equals,
    generate_recovery_code,
    generate_secure_token,
    generate_verification_code,
    hash_token,
)
from .interfaces import ITokenRepository
from .models import AuthToken, IssuedToken, TokenStatus, TokenType
from .repository import MemoryTokenRepository, SupabaseTokenRepository
from .service import TokenService

__all__ = [
    # Models
    "AuthToken",
    "IssuedToken",
    "TokenStatus",
    "TokenType",
    # Exceptions
    "InvalidTokenError",
    "TokenNotFoundError",
    # Generators
    "code_hint",
    "constant_time_equals",
    "generate_recovery_code",
    "generate_secure_token",
    "generate_verification_code",
    "hash_token",
    # Storage
    "ITokenRepository",
    "MemoryTokenRepository",
    "SupabaseTokenRepository",
    # Service
    "TokenService",
]
