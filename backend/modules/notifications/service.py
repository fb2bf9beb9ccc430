"""
Email sender implementations.

Both senders share the message templates in BaseEmailSender and differ only
in ``deliver``: the console sender writes to the log (development), the relay
sender POSTs to an HTTP email relay (production).
"""

import logging
from typing import Optional

import httpx

from .exceptions import EmailDeliveryError
from .models import EmailMessage

logger = logging.getLogger(__name__)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _minutes(count: int) -> str:
    return _plural(count, "minute")


class BaseEmailSender:
    """Renders FamilyHub emails and hands them to ``deliver``."""

    def __init__(self, app_url: str):
        self._app_url = app_url.rstrip("/")

    async def deliver(self, message: EmailMessage) -> None:
        raise NotImplementedError

    async def send_verification_code(
        self,
        email: str,
        code: str,
        first_name: Optional[str] = None,
        ttl_minutes: int = 15,
    ) -> None:
        greeting = f"Hi {first_name}," if first_name else "Hi,"
        await self.deliver(EmailMessage(
            to_email=email,
            subject="Verify your FamilyHub email",
            body=(
                f"{greeting}\n\nYour FamilyHub verification code is {code}.\n"
                f"It expires in {_minutes(ttl_minutes)}.\n\n"
                f"Or open {self._app_url}/verify-email to enter it."
            ),
            category="verification",
        ))

    async def send_welcome(self, email: str, first_name: Optional[str] = None) -> None:
        greeting = f"Welcome to FamilyHub, {first_name}!" if first_name else "Welcome to FamilyHub!"
        await self.deliver(EmailMessage(
            to_email=email,
            subject="Welcome to FamilyHub",
            body=f"{greeting}\n\nYour dashboard is ready: {self._app_url}/dashboard",
            category="welcome",
        ))

    async def send_login_code(self, email: str, code: str, ttl_minutes: int = 10) -> None:
        await self.deliver(EmailMessage(
            to_email=email,
            subject="Your FamilyHub sign-in code",
            body=f"Your sign-in code is {code}. It expires in {_minutes(ttl_minutes)}.",
            category="login",
        ))

    async def send_magic_link(self, email: str, link: str, ttl_minutes: int = 15) -> None:
        await self.deliver(EmailMessage(
            to_email=email,
            subject="Sign in to FamilyHub",
            body=(
                f"Use this link to sign in to FamilyHub:\n{link}\n"
                f"It expires in {_minutes(ttl_minutes)}.\n\n"
                "If you didn't request it, you can ignore this email."
            ),
            category="recovery",
        ))

    async def send_recovery_code(
        self, backup_email: str, code: str, ttl_minutes: int = 10
    ) -> None:
        await self.deliver(EmailMessage(
            to_email=backup_email,
            subject="FamilyHub account recovery code",
            body=(
                f"Your account recovery code is {code}. "
                f"It expires in {_minutes(ttl_minutes)}.\n"
                "This email was sent to your backup address."
            ),
            category="recovery",
        ))

    async def send_backup_email_verification(self, backup_email: str, code: str) -> None:
        await self.deliver(EmailMessage(
            to_email=backup_email,
            subject="Confirm your FamilyHub backup email",
            body=f"Enter {code} in FamilyHub to confirm this backup address.",
            category="verification",
        ))

    async def send_invitation(
        self,
        email: str,
        family_name: str,
        link: str,
        inviter_email: Optional[str] = None,
        expires_in_days: int = 7,
    ) -> None:
        inviter = inviter_email or "A family member"
        await self.deliver(EmailMessage(
            to_email=email,
            subject=f"You're invited to join {family_name} on FamilyHub",
            body=(
                f"{inviter} invited you to join {family_name}.\n\nAccept: {link}\n"
                f"The invitation expires in {_plural(expires_in_days, 'day')}."
            ),
            category="invitation",
        ))


class ConsoleEmailSender(BaseEmailSender):
    """
    Logs emails instead of sending them.

    Message bodies contain one-time codes, so they are only logged when
    ``log_bodies`` is set (debug deployments).
    """

    def __init__(self, app_url: str, log_bodies: bool = False):
        super().__init__(app_url)
        self._log_bodies = log_bodies

    async def deliver(self, message: EmailMessage) -> None:
        logger.info(f"Email to {message.to_email}: {message.subject}")
        if self._log_bodies:
            logger.debug(message.body)


class RelayEmailSender(BaseEmailSender):
    """Sends email through an HTTP relay service."""

    def __init__(
        self,
        app_url: str,
        relay_url: str,
        api_key: str,
        from_address: str,
        timeout: float = 10.0,
    ):
        super().__init__(app_url)
        self._relay_url = relay_url
        self._api_key = api_key
        self._from_address = from_address
        self._timeout = timeout

    async def deliver(self, message: EmailMessage) -> None:
        payload = {
            "to_email": message.to_email,
            "subject": message.subject,
            "body": message.body,
            "from_address": self._from_address,
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._relay_url,
                    json=payload,
                    headers={
                        "X-API-Key": self._api_key,
                        "Content-Type": "application/json",
                    },
                    timeout=self._timeout,
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Email relay timeout for {message.to_email}")
            raise EmailDeliveryError(message.to_email, "timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"Email relay request failed: {e}")
            raise EmailDeliveryError(message.to_email, str(e)) from e

        logger.info(f"Email sent via relay to {message.to_email}")
