"""
Rate limiting exceptions.
"""

from shared.exceptions import ErrorKind, FamilyHubError


class RateLimitExceededError(FamilyHubError):
    """Raised when an endpoint's limit is exhausted for a client."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int, limit: int, remaining: int = 0):
        super().__init__(
            "Too many requests. Please try again later.",
            code="RATE_LIMIT_EXCEEDED",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining

    @property
    def headers(self) -> dict[str, str]:
        """Response headers describing the retry window."""
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }


class IpBlockedError(FamilyHubError):
    """Raised when a request arrives from a blocked IP."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int):
        super().__init__(
            "Access temporarily blocked due to suspicious activity",
            code="IP_BLOCKED",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}
