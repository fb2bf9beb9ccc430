"""API models package."""

from .errors import ERROR_RESPONSES, ErrorResponse
from .user import TokenPayload

__all__ = [
    "ERROR_RESPONSES",
    "ErrorResponse",
    "TokenPayload",
]
