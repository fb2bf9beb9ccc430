"""
Account recovery service.

Three ways back into an account without the primary inbox or a password:

- recovery codes: long-lived, hashed at rest, one active per user
- backup email: a short-lived code sent to a verified secondary address
- forgot password: a single-use magic link sent to the primary address

The request endpoints answer identically whether or not the account exists;
only the audit log records the real outcome.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

from modules.audit.models import AuditCategory, AuditSeverity
from modules.audit.service import AuditLogger
from modules.identity.interfaces import IIdentityProvider
from modules.identity.models import AuthSessionResponse
from modules.notifications.exceptions import EmailDeliveryError
from modules.notifications.interfaces import IEmailSender
from modules.ratelimit.service import RateLimiter
from modules.tokens.exceptions import InvalidTokenError
from modules.tokens.generator import (
    code_hint,
    constant_time_equals,
    generate_recovery_code,
    generate_verification_code,
    hash_token,
)
from modules.tokens.models import TokenType
from modules.tokens.service import TokenService
from modules.verification.exceptions import CodeExpiredError, InvalidCodeError, VerificationError
from modules.verification.models import VerificationType
from modules.verification.service import VerificationService
from shared.config import Settings
from shared.models import AuthenticatedUser, SecurityContext

from .exceptions import BackupEmailConflictError, BackupEmailNotFoundError, InvalidRecoveryError
from .interfaces import IRecoveryRepository
from .models import (
    GENERIC_BACKUP_MESSAGE,
    GENERIC_RESET_MESSAGE,
    AddBackupEmailRequest,
    BackupEmailRecoveryRequest,
    BackupEmailRecoveryVerifyRequest,
    BackupEmailResponse,
    EmailSentResponse,
    ForgotPasswordRequest,
    RecoveryCode,
    RecoveryCodeResponse,
    RecoveryCodeVerifyRequest,
    RecoverySessionResponse,
)

logger = logging.getLogger(__name__)

# Rate limit endpoints
FORGOT_PASSWORD_ENDPOINT = "auth:forgot-password"
RECOVERY_ENDPOINT = "auth:recovery"

# Hashed when the account is unknown so both branches do the same work
_DUMMY_HASH = hash_token("00000-00000")


class RecoveryService:
    """Recovery codes, backup emails and forgot-password links."""

    def __init__(
        self,
        identity: IIdentityProvider,
        repository: IRecoveryRepository,
        verifications: VerificationService,
        tokens: TokenService,
        rate_limiter: RateLimiter,
        audit: AuditLogger,
        email: IEmailSender,
        settings: Settings,
    ):
        self._identity = identity
        self._repository = repository
        self._verifications = verifications
        self._tokens = tokens
        self._rate_limiter = rate_limiter
        self._audit = audit
        self._email = email
        self._settings = settings

    # -------------------------------------------------------------------------
    # Recovery codes
    # -------------------------------------------------------------------------

    async def issue_recovery_code(self, user_id: str) -> tuple[str, RecoveryCode]:
        """
        Supersede the user's active recovery code with a new one.

        Returns:
            Tuple of (plaintext code, stored row). The plaintext is never
            stored and must be shown to the user immediately.
        """
        code = generate_recovery_code()
        self._repository.deactivate_codes(user_id)
        stored = self._repository.create_code({
            "user_id": user_id,
            "code_hash": hash_token(code),
            "code_hint": code_hint(code),
            "expires_at": datetime.now(timezone.utc)
            + timedelta(days=self._settings.recovery_code_ttl_days),
            "is_active": True,
        })
        return code, stored

    async def regenerate_recovery_code(
        self, user: AuthenticatedUser, context: SecurityContext
    ) -> RecoveryCodeResponse:
        """Generate a new recovery code for a signed-in user."""
        code, stored = await self.issue_recovery_code(user.id)
        await self._audit.log(
            "recovery_code_generated",
            AuditCategory.SECURITY,
            "Recovery code generated",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            event_data={"code_hint": stored.code_hint},
        )
        return RecoveryCodeResponse(
            message="Save this recovery code somewhere safe. It will not be shown again.",
            recovery_code=code,
            code_hint=stored.code_hint,
            expires_at=stored.expires_at,
        )

    async def recover_with_code(
        self, request: RecoveryCodeVerifyRequest, context: SecurityContext
    ) -> RecoverySessionResponse:
        """
        Sign in with a recovery code.

        The code is single-use: it is deactivated on success and the user is
        asked to generate a new one.

        Raises:
            InvalidRecoveryError: For unknown accounts and wrong, used or expired codes
        """
        email = str(request.email).strip().lower()
        user = await self._identity.get_user_by_email(email)
        stored = self._repository.get_active_code(user.id) if user else None

        submitted_hash = hash_token(request.recovery_code)
        matches = constant_time_equals(
            submitted_hash, stored.code_hash if stored else _DUMMY_HASH
        )
        now = datetime.now(timezone.utc)
        claimed = None
        if user and stored and matches and stored.expires_at > now:
            claimed = self._repository.claim_code(stored.id, now)

        if user is None or claimed is None:
            await self._rate_limiter.record_attempt(
                RECOVERY_ENDPOINT, context.ip_address, context.user_agent, False, email
            )
            await self._audit.log(
                "recovery_code_failed",
                AuditCategory.SECURITY,
                "Failed recovery code attempt",
                context=context,
                target_user_id=user.id if user else None,
                event_data={"email": email, "account_exists": user is not None},
                severity=AuditSeverity.MEDIUM,
                success=False,
            )
            raise InvalidRecoveryError()

        session = await self._identity.issue_session(email)
        await self._rate_limiter.record_attempt(
            RECOVERY_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        await self._audit.log(
            "account_recovered",
            AuditCategory.SECURITY,
            "Account recovered with recovery code",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            event_data={"method": "recovery_code", "code_hint": claimed.code_hint},
            severity=AuditSeverity.HIGH,
        )
        return RecoverySessionResponse(
            message="Account recovered. Please generate a new recovery code.",
            user=user,
            session=session,
            must_regenerate_recovery_code=True,
        )

    # -------------------------------------------------------------------------
    # Forgot password (magic link)
    # -------------------------------------------------------------------------

    def _magic_link(self, raw_token: str, redirect_url: Optional[str]) -> str:
        query = {"token": raw_token}
        if redirect_url:
            query["redirect_url"] = redirect_url
        return f"{self._settings.app_url.rstrip('/')}/auth/magic-link?{urlencode(query)}"

    async def forgot_password(
        self, request: ForgotPasswordRequest, context: SecurityContext
    ) -> EmailSentResponse:
        """
        Email a single-use sign-in link if the account exists.

        Always returns the same response and always records a successful
        attempt, so callers cannot discover accounts.
        """
        email = str(request.email).strip().lower()
        redirect_url = str(request.redirect_url) if request.redirect_url else None
        user = await self._identity.get_user_by_email(email)

        if user is not None:
            issued = await self._tokens.issue(
                TokenType.MAGIC_LINK,
                timedelta(minutes=self._settings.magic_link_ttl_minutes),
                email=email,
                user_id=user.id,
                metadata={"redirect_url": redirect_url, "purpose": "account_recovery"},
            )
            try:
                await self._email.send_magic_link(
                    email,
                    self._magic_link(issued.raw_token, redirect_url),
                    ttl_minutes=self._settings.magic_link_ttl_minutes,
                )
            except EmailDeliveryError:
                logger.warning(f"Failed to send recovery link for user {user.id}")
            await self._audit.log(
                "password_reset_requested",
                AuditCategory.SECURITY,
                "Sign-in link requested",
                context=context,
                target_user_id=user.id,
                event_data={"email": email},
            )
        else:
            await self._audit.log(
                "password_reset_attempted_nonexistent",
                AuditCategory.SECURITY,
                "Sign-in link requested for unknown email",
                context=context,
                event_data={"email": email},
                severity=AuditSeverity.LOW,
            )

        await self._rate_limiter.record_attempt(
            FORGOT_PASSWORD_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        return EmailSentResponse(message=GENERIC_RESET_MESSAGE)

    async def redeem_magic_link(
        self, raw_token: str, context: SecurityContext
    ) -> AuthSessionResponse:
        """
        Exchange a magic-link token for a session.

        Raises:
            InvalidTokenError: If the token is invalid, expired or already used
        """
        try:
            token = await self._tokens.redeem(raw_token, TokenType.MAGIC_LINK)
        except InvalidTokenError:
            await self._rate_limiter.record_attempt(
                RECOVERY_ENDPOINT, context.ip_address, context.user_agent, False
            )
            raise

        session = await self._identity.issue_session(token.email or "")
        user = session.user or await self._identity.get_user(token.user_id or "")
        await self._rate_limiter.record_attempt(
            RECOVERY_ENDPOINT, context.ip_address, context.user_agent, True, token.email
        )
        await self._audit.log(
            "magic_link_redeemed",
            AuditCategory.AUTHENTICATION,
            "Signed in with emailed link",
            context=context,
            actor_user_id=token.user_id,
            target_user_id=token.user_id,
        )
        return AuthSessionResponse(message="Signed in successfully", user=user, session=session)

    # -------------------------------------------------------------------------
    # Backup email
    # -------------------------------------------------------------------------

    async def add_backup_email(
        self,
        user: AuthenticatedUser,
        request: AddBackupEmailRequest,
        context: SecurityContext,
    ) -> BackupEmailResponse:
        """Register a backup address and email it a confirmation code."""
        backup_address = str(request.email).strip().lower()
        if backup_address == str(user.email).lower():
            raise BackupEmailConflictError()

        code = generate_verification_code()
        backup = self._repository.replace_backup_email({
            "user_id": user.id,
            "email": backup_address,
            "is_verified": False,
            "verification_code": code,
            "verification_code_expires_at": datetime.now(timezone.utc)
            + timedelta(minutes=self._settings.verification_code_ttl_minutes),
            "is_active": True,
        })
        try:
            await self._email.send_backup_email_verification(backup_address, code)
        except EmailDeliveryError:
            logger.warning(f"Failed to send backup email confirmation for user {user.id}")

        await self._audit.log(
            "backup_email_added",
            AuditCategory.ACCOUNT,
            "Backup email added",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
        )
        return BackupEmailResponse(
            message="Check your backup email for a confirmation code.",
            email=backup.email,
            is_verified=False,
        )

    async def confirm_backup_email(
        self, user: AuthenticatedUser, code: str, context: SecurityContext
    ) -> BackupEmailResponse:
        """
        Confirm the user's pending backup email.

        Raises:
            BackupEmailNotFoundError: If there is no pending backup email
            InvalidCodeError / CodeExpiredError: For a wrong or stale code
        """
        backup = self._repository.get_active_backup_email(user.id)
        if backup is None or backup.is_verified:
            raise BackupEmailNotFoundError()
        if not backup.verification_code or not constant_time_equals(
            backup.verification_code, code
        ):
            raise InvalidCodeError()
        now = datetime.now(timezone.utc)
        if backup.verification_code_expires_at and backup.verification_code_expires_at < now:
            raise CodeExpiredError()

        verified = self._repository.mark_backup_email_verified(backup.id, now) or backup
        await self._audit.log(
            "backup_email_verified",
            AuditCategory.ACCOUNT,
            "Backup email verified",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
        )
        return BackupEmailResponse(
            message="Backup email confirmed.",
            email=verified.email,
            is_verified=True,
        )

    async def request_backup_email_code(
        self, request: BackupEmailRecoveryRequest, context: SecurityContext
    ) -> EmailSentResponse:
        """
        Send a short-lived recovery code to the account's backup email.

        Always returns the same response whether or not the account or a
        verified backup email exists.
        """
        email = str(request.email).strip().lower()
        user = await self._identity.get_user_by_email(email)
        backup = self._repository.get_active_backup_email(user.id) if user else None

        if user is not None and backup is not None and backup.is_verified:
            verification = await self._verifications.issue(
                user.id,
                email,
                VerificationType.RECOVERY,
                timedelta(minutes=self._settings.backup_recovery_code_ttl_minutes),
            )
            try:
                await self._email.send_recovery_code(
                    backup.email,
                    verification.verification_code or "",
                    ttl_minutes=self._settings.backup_recovery_code_ttl_minutes,
                )
            except EmailDeliveryError:
                logger.warning(f"Failed to send backup recovery code for user {user.id}")
            await self._audit.log(
                "backup_recovery_requested",
                AuditCategory.SECURITY,
                "Recovery code sent to backup email",
                context=context,
                target_user_id=user.id,
            )
        else:
            await self._audit.log(
                "backup_recovery_attempted_unavailable",
                AuditCategory.SECURITY,
                "Backup recovery requested without a verified backup email",
                context=context,
                target_user_id=user.id if user else None,
                event_data={"email": email, "account_exists": user is not None},
                severity=AuditSeverity.LOW,
            )

        await self._rate_limiter.record_attempt(
            FORGOT_PASSWORD_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        return EmailSentResponse(message=GENERIC_BACKUP_MESSAGE)

    async def verify_backup_email_code(
        self, request: BackupEmailRecoveryVerifyRequest, context: SecurityContext
    ) -> RecoverySessionResponse:
        """
        Sign in with a code sent to the backup email.

        Raises:
            InvalidRecoveryError: For any failure
        """
        email = str(request.email).strip().lower()
        try:
            await self._verifications.verify_code(
                request.code, VerificationType.RECOVERY, email=email
            )
        except VerificationError as e:
            await self._rate_limiter.record_attempt(
                RECOVERY_ENDPOINT, context.ip_address, context.user_agent, False, email
            )
            await self._audit.log(
                "backup_recovery_failed",
                AuditCategory.SECURITY,
                "Failed backup email recovery attempt",
                context=context,
                event_data={"email": email, "reason": e.reason},
                success=False,
            )
            raise InvalidRecoveryError("Invalid email or recovery code") from e

        session = await self._identity.issue_session(email)
        user = session.user or await self._identity.get_user_by_email(email)
        await self._rate_limiter.record_attempt(
            RECOVERY_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        await self._audit.log(
            "account_recovered",
            AuditCategory.SECURITY,
            "Account recovered through backup email",
            context=context,
            actor_user_id=user.id if user else None,
            target_user_id=user.id if user else None,
            event_data={"method": "backup_email"},
            severity=AuditSeverity.HIGH,
        )
        return RecoverySessionResponse(
            message="Account recovered.",
            user=user,
            session=session,
        )
