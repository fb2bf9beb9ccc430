"""
Email module exceptions.
"""

from typing import Optional

from shared.exceptions import ExternalServiceError


class EmailDeliveryError(ExternalServiceError):
    """Raised when an email could not be handed to the delivery service."""

    def __init__(self, to_email: str, reason: Optional[str] = None):
        super().__init__(
            "Email delivery failed",
            service="email",
            code="EMAIL_DELIVERY_FAILED",
            details={"reason": reason} if reason else None,
        )
        self.to_email = to_email
