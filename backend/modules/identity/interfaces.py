"""
Identity provider interface.

Auth flows depend on IIdentityProvider, never on the provider SDK directly.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import IdentityUser, IssuedSession


@runtime_checkable
class IIdentityProvider(Protocol):
    """User management and session primitives of the identity service."""

    async def get_user(self, user_id: str) -> Optional[IdentityUser]:
        ...

    async def get_user_by_email(self, email: str) -> Optional[IdentityUser]:
        """Look up a user by normalized email."""
        ...

    async def create_user(
        self, email: str, metadata: Optional[dict[str, Any]] = None
    ) -> IdentityUser:
        """
        Create a user without a credential, already confirmed at the provider.

        The application gates access with its own verification codes, so the
        provider must not send its own confirmation email.

        Raises:
            EmailAlreadyExistsError: If the email is taken
            InvalidEmailError: If the provider rejects the address
            IdentityProviderError: For any other failure
        """
        ...

    async def confirm_email(self, user_id: str) -> None:
        ...

    async def issue_session(self, email: str) -> IssuedSession:
        """Mint a session for a user without a password."""
        ...

    async def verify_otp(self, token_hash: str, otp_type: str) -> IdentityUser:
        """
        Verify a provider-issued one-time token.

        Raises:
            OtpVerificationError: If the token is invalid or expired
        """
        ...

    async def refresh_session(self, refresh_token: str) -> IssuedSession:
        """
        Exchange a refresh token for a new session.

        Raises:
            SessionTokenError: With a code describing why the exchange failed
        """
        ...

    async def sign_out(self, access_token: str) -> None:
        ...

    async def ping(self) -> bool:
        """Whether the provider is reachable."""
        ...
