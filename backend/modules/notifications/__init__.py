"""
Notifications module: transactional email dispatch.

Public API:
- IEmailSender: Interface used by the auth flows
- ConsoleEmailSender: Logs emails (development)
- RelayEmailSender: HTTP relay delivery (production)
"""

from .exceptions import EmailDeliveryError
from .interfaces import IEmailSender
from .models import EmailMessage
from .service import BaseEmailSender, ConsoleEmailSender, RelayEmailSender

__all__ = [
    "EmailDeliveryError",
    "IEmailSender",
    "EmailMessage",
    "BaseEmailSender",
    "ConsoleEmailSender",
    "RelayEmailSender",
]
