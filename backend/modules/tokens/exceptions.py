"""
Token module exceptions.
"""

from shared.exceptions import ErrorKind, FamilyHubError, NotFoundError


class InvalidTokenError(FamilyHubError):
    """
    Raised when an emailed token cannot be used.

    ``reason`` is one of: invalid, expired, already_used, revoked.
    """

    kind = ErrorKind.INVALID_TOKEN

    def __init__(
        self,
        reason: str,
        token_type: str,
        message: str = "Invalid or expired token",
        code: str = "INVALID_TOKEN",
    ):
        super().__init__(
            message,
            code=code,
            details={"reason": reason, "token_type": token_type},
        )
        self.reason = reason


class TokenNotFoundError(NotFoundError):
    """Raised when a token id does not exist."""

    def __init__(self, token_id: str):
        super().__init__(
            f"Token not found: {token_id}",
            code="TOKEN_NOT_FOUND",
            details={"token_id": token_id},
        )
