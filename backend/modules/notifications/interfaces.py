"""
Email dispatch interface.

Email delivery is an external collaborator. Services depend on IEmailSender
and treat EmailDeliveryError as recoverable.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IEmailSender(Protocol):
    """Transactional emails sent by the auth flows."""

    async def send_verification_code(
        self,
        email: str,
        code: str,
        first_name: Optional[str] = None,
        ttl_minutes: int = 15,
    ) -> None:
        ...

    async def send_welcome(self, email: str, first_name: Optional[str] = None) -> None:
        ...

    async def send_login_code(self, email: str, code: str, ttl_minutes: int = 10) -> None:
        ...

    async def send_magic_link(self, email: str, link: str, ttl_minutes: int = 15) -> None:
        ...

    async def send_recovery_code(
        self, backup_email: str, code: str, ttl_minutes: int = 10
    ) -> None:
        ...

    async def send_backup_email_verification(self, backup_email: str, code: str) -> None:
        ...

    async def send_invitation(
        self,
        email: str,
        family_name: str,
        link: str,
        inviter_email: Optional[str] = None,
        expires_in_days: int = 7,
    ) -> None:
        ...
