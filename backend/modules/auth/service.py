"""
Authentication orchestration.

Each public method backs one auth endpoint and composes the identity
provider, code/token services, family provisioning, rate limiter and audit
log. Route handlers stay thin; everything that decides an outcome lives here.

Follow-up steps after an account exists (profile row, emails, family
provisioning) are best effort: they are logged when they fail and the
request still succeeds.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from modules.audit.models import AuditCategory, AuditSeverity
from modules.audit.service import AuditLogger
from modules.families.models import FamilyRole, FamilySummary
from modules.families.service import FamilyService
from modules.identity.exceptions import (
    EmailAlreadyExistsError,
    OtpVerificationError,
    SessionTokenError,
)
from modules.identity.interfaces import IIdentityProvider
from modules.identity.models import AuthSessionResponse, IdentityUser
from modules.notifications.exceptions import EmailDeliveryError
from modules.notifications.interfaces import IEmailSender
from modules.ratelimit.service import BLOCK_THRESHOLD, RateLimiter
from modules.recovery.service import RecoveryService
from modules.tokens.exceptions import InvalidTokenError
from modules.tokens.models import AuthToken, TokenType
from modules.tokens.service import TokenService
from modules.verification.exceptions import AlreadyVerifiedError, VerificationError
from modules.verification.models import EmailVerification, VerificationType
from modules.verification.service import VerificationService
from shared.config import Settings
from shared.exceptions import FamilyHubError
from shared.models import AuthenticatedUser, SecurityContext

from .exceptions import (
    AccountLockedError,
    DisposableEmailError,
    InvalidInvitationError,
    InvitationEmailMismatchError,
    UserNotFoundError,
)
from .interfaces import IProfileRepository
from .models import (
    REMEMBER_ME_MAX_AGE_SECONDS,
    SESSION_MAX_AGE_SECONDS,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    ResendVerificationRequest,
    SessionResponse,
    SessionStatus,
    SignupRequest,
    SignupResponse,
    UserProfile,
    VerifyEmailRequest,
    VerifyEmailResponse,
    VerifyLoginRequest,
)
from .validation import disposable_domain, normalize_email

logger = logging.getLogger(__name__)

# Rate limit endpoints
SIGNUP_ENDPOINT = "auth:signup"
VERIFY_EMAIL_ENDPOINT = "auth:verify-email"
RESEND_VERIFICATION_ENDPOINT = "auth:resend-verification"
SEND_CODE_ENDPOINT = "auth:send-code"
LOGIN_ENDPOINT = "auth:login"
REFRESH_ENDPOINT = "auth:refresh"

LOCKOUT_MINUTES = 60


class AuthService:
    """Signup, verification, passwordless login and session endpoints."""

    def __init__(
        self,
        identity: IIdentityProvider,
        profiles: IProfileRepository,
        verifications: VerificationService,
        tokens: TokenService,
        families: FamilyService,
        recovery: RecoveryService,
        rate_limiter: RateLimiter,
        audit: AuditLogger,
        email: IEmailSender,
        settings: Settings,
    ):
        self._identity = identity
        self._profiles = profiles
        self._verifications = verifications
        self._tokens = tokens
        self._families = families
        self._recovery = recovery
        self._rate_limiter = rate_limiter
        self._audit = audit
        self._email = email
        self._settings = settings

    # -------------------------------------------------------------------------
    # Signup
    # -------------------------------------------------------------------------

    async def signup(self, request: SignupRequest, context: SecurityContext) -> SignupResponse:
        """
        Create a passwordless account.

        Args:
            request: Validated signup payload
            context: Caller IP and user agent

        Returns:
            SignupResponse including the one-time recovery code

        Raises:
            DisposableEmailError: If the email domain is disposable
            InvalidInvitationError: If the invitation token cannot be used
            InvitationEmailMismatchError: If the invitation targets another email
            EmailAlreadyExistsError: If an account already exists
            IdentityProviderError: If the provider cannot create the user
        """
        email = normalize_email(str(request.email))
        try:
            return await self._signup(request, email, context)
        except FamilyHubError as e:
            await self._rate_limiter.record_attempt(
                SIGNUP_ENDPOINT, context.ip_address, context.user_agent, False, email
            )
            await self._audit.log(
                "user_signup_failed",
                AuditCategory.AUTHENTICATION,
                f"Signup failed: {e.message}",
                context=context,
                event_data={"email": email, "error_code": e.code},
                success=False,
            )
            raise

    async def _signup(
        self, request: SignupRequest, email: str, context: SecurityContext
    ) -> SignupResponse:
        domain = disposable_domain(email, self._settings.disposable_email_domains)
        if domain:
            raise DisposableEmailError(domain)

        invitation: Optional[AuthToken] = None
        if request.family_invitation_token:
            invitation = await self._check_invitation(request.family_invitation_token, email)

        if await self._identity.get_user_by_email(email) is not None:
            raise EmailAlreadyExistsError(email)

        if invitation is not None:
            invitation = await self._consume_invitation(invitation)

        user = await self._identity.create_user(email, {
            "first_name": request.first_name,
            "last_name": request.last_name,
            "phone_number": request.phone_number,
            "signup_method": "family_invitation" if invitation else "passwordless",
        })

        await self._ensure_profile(user.id, request.first_name, request.last_name, request.phone_number)
        recovery_code = await self._issue_signup_recovery_code(user.id)
        verification_code_sent = await self._send_signup_verification(user, request.first_name)
        family_id, family_joined = await self._resolve_family(user, request, invitation, context)

        await self._rate_limiter.record_attempt(
            SIGNUP_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        await self._audit.log(
            "user_signup",
            AuditCategory.AUTHENTICATION,
            "New user account created",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            target_family_id=family_id,
            event_data={
                "email": email,
                "signup_method": "family_invitation" if invitation else "passwordless",
                "family_joined": family_joined,
            },
        )

        message = (
            "Account created and family joined. Please check your email for a verification code."
            if family_joined
            else "Account created. Please check your email for a verification code."
        )
        return SignupResponse(
            message=message,
            user=user,
            session=None,
            needs_email_verification=True,
            family_joined=family_joined,
            family_id=family_id,
            recovery_code=recovery_code,
            verification_code_sent=verification_code_sent,
        )

    async def _check_invitation(self, raw_token: str, email: str) -> AuthToken:
        try:
            invitation = await self._tokens.inspect(raw_token, TokenType.FAMILY_INVITATION)
        except InvalidTokenError as e:
            raise InvalidInvitationError(e.reason) from e
        if invitation.email and normalize_email(invitation.email) != email:
            raise InvitationEmailMismatchError()
        if not invitation.family_id:
            raise InvalidInvitationError("invalid")
        return invitation

    async def _consume_invitation(self, invitation: AuthToken) -> AuthToken:
        try:
            return await self._tokens.consume(invitation)
        except InvalidTokenError as e:
            raise InvalidInvitationError(e.reason) from e

    async def _ensure_profile(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> None:
        try:
            if self._profiles.get_profile(user_id) is not None:
                return
            display_name = " ".join(p for p in (first_name, last_name) if p) or None
            self._profiles.create_profile({
                "id": user_id,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": display_name,
                "phone_number": phone_number,
            })
        except Exception:
            logger.exception(f"Failed to create profile for user {user_id}")

    async def _issue_signup_recovery_code(self, user_id: str) -> Optional[str]:
        try:
            code, _ = await self._recovery.issue_recovery_code(user_id)
        except Exception:
            logger.exception(f"Failed to issue recovery code for user {user_id}")
            return None
        return code

    async def _send_signup_verification(
        self, user: IdentityUser, first_name: Optional[str]
    ) -> bool:
        try:
            verification = await self._issue_verification(user.id, user.email)
            await self._email.send_verification_code(
                user.email,
                verification.verification_code or "",
                first_name,
                ttl_minutes=self._settings.verification_code_ttl_minutes,
            )
        except Exception:
            logger.exception(f"Failed to send verification code to user {user.id}")
            return False
        return True

    async def _issue_verification(self, user_id: str, email: str) -> EmailVerification:
        return await self._verifications.issue(
            user_id,
            email,
            VerificationType.SIGNUP,
            timedelta(minutes=self._settings.verification_code_ttl_minutes),
            with_token=True,
        )

    async def _resolve_family(
        self,
        user: IdentityUser,
        request: SignupRequest,
        invitation: Optional[AuthToken],
        context: SecurityContext,
    ) -> tuple[Optional[str], bool]:
        """Join the invited family or provision a default one."""
        try:
            if invitation is not None:
                role = FamilyRole(invitation.metadata.get("invited_role") or FamilyRole.ADULT.value)
                membership = await self._families.join_family(
                    user.id,
                    invitation.family_id or "",
                    role,
                    relationship=invitation.metadata.get("relationship"),
                    invited_by=invitation.metadata.get("invited_by"),
                )
                await self._audit.log(
                    "family_member_added",
                    AuditCategory.FAMILY,
                    "User joined family through invitation",
                    context=context,
                    actor_user_id=user.id,
                    target_user_id=user.id,
                    target_family_id=membership.family_id,
                    event_data={"role": role.value, "invitation_id": invitation.id},
                )
                return membership.family_id, True

            membership = await self._families.provision_default_family(
                user.id, user.email, request.first_name, request.last_name
            )
            return membership.family_id, False
        except Exception:
            logger.exception(f"Family setup failed for user {user.id}")
            await self._audit.log(
                "signup_post_processing_error",
                AuditCategory.SYSTEM,
                "Family setup failed after account creation",
                context=context,
                target_user_id=user.id,
                severity=AuditSeverity.HIGH,
                success=False,
            )
            return None, False

    # -------------------------------------------------------------------------
    # Email verification
    # -------------------------------------------------------------------------

    async def verify_email(
        self, request: VerifyEmailRequest, context: SecurityContext
    ) -> VerifyEmailResponse:
        """
        Consume a verification code (or legacy token) and sign the user in.

        Raises:
            InvalidCodeError: If nothing matches
            AlreadyVerifiedError: If the code was already used
            CodeExpiredError: If the code has expired
        """
        try:
            user, first_time = await self._consume_verification(request)
        except (VerificationError, OtpVerificationError) as e:
            await self._rate_limiter.record_attempt(
                VERIFY_EMAIL_ENDPOINT, context.ip_address, context.user_agent, False
            )
            await self._audit.log(
                "email_verification_failed",
                AuditCategory.AUTHENTICATION,
                f"Email verification failed: {e.message}",
                context=context,
                event_data={"reason": e.details.get("reason"), "type": request.type.value},
                severity=AuditSeverity.LOW,
                success=False,
            )
            raise

        try:
            await self._identity.confirm_email(user.id)
        except FamilyHubError:
            logger.warning(f"Provider email confirmation failed for user {user.id}")

        if first_time and request.type == VerificationType.SIGNUP:
            await self._ensure_profile(
                user.id,
                user.user_metadata.get("first_name"),
                user.user_metadata.get("last_name"),
                user.user_metadata.get("phone_number"),
            )
            try:
                await self._email.send_welcome(user.email, user.user_metadata.get("first_name"))
            except EmailDeliveryError:
                logger.warning(f"Failed to send welcome email to user {user.id}")

        session = None
        try:
            session = await self._identity.issue_session(user.email)
        except FamilyHubError:
            logger.warning(f"Could not issue session after verification for user {user.id}")

        await self._rate_limiter.record_attempt(
            VERIFY_EMAIL_ENDPOINT, context.ip_address, context.user_agent, True, user.email
        )
        await self._audit.log(
            "email_verification_successful",
            AuditCategory.AUTHENTICATION,
            "Email address verified",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            event_data={"type": request.type.value, "session_issued": session is not None},
        )
        return VerifyEmailResponse(
            message="Email verified successfully",
            user=user,
            session=session,
        )

    async def _consume_verification(
        self, request: VerifyEmailRequest
    ) -> tuple[IdentityUser, bool]:
        """
        Resolve and claim the verification the request refers to.

        The six-digit code is primary. A token is looked up in our own
        records first and otherwise handed to the provider.

        Returns:
            Tuple of (user, whether one of our own records was claimed)
        """
        if request.code:
            email = normalize_email(str(request.email)) if request.email else None
            record = await self._verifications.verify_code(request.code, request.type, email)
            return await self._user_for(record), True

        token = request.token or ""
        if await self._verifications.find_token(token, request.type) is not None:
            record = await self._verifications.verify_token(token, request.type)
            return await self._user_for(record), True

        user = await self._identity.verify_otp(token, request.type.value)
        return user, False

    async def _user_for(self, record: EmailVerification) -> IdentityUser:
        user = await self._identity.get_user(record.user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def resend_verification(
        self, request: ResendVerificationRequest, context: SecurityContext
    ) -> MessageResponse:
        """
        Issue and email a new signup verification code.

        Raises:
            UserNotFoundError: If no account exists
            AlreadyVerifiedError: If the account is already verified
            EmailDeliveryError: If the email could not be sent
        """
        email = normalize_email(str(request.email))
        await self._rate_limiter.record_attempt(
            RESEND_VERIFICATION_ENDPOINT, context.ip_address, context.user_agent, True, email
        )

        user = await self._identity.get_user_by_email(email)
        if user is None:
            raise UserNotFoundError()
        if await self._verifications.is_verified(user.id, VerificationType.SIGNUP):
            raise AlreadyVerifiedError()

        verification = await self._issue_verification(user.id, email)
        await self._email.send_verification_code(
            email,
            verification.verification_code or "",
            user.user_metadata.get("first_name"),
            ttl_minutes=self._settings.verification_code_ttl_minutes,
        )
        await self._audit.log(
            "verification_resent",
            AuditCategory.AUTHENTICATION,
            "Verification code re-sent",
            context=context,
            target_user_id=user.id,
        )
        return MessageResponse(message="A new verification code has been sent to your email.")

    # -------------------------------------------------------------------------
    # Passwordless login
    # -------------------------------------------------------------------------

    async def request_login_code(
        self, request: LoginRequest, context: SecurityContext
    ) -> MessageResponse:
        """Email a sign-in code. Responds identically for unknown emails."""
        email = normalize_email(str(request.email))
        user = await self._identity.get_user_by_email(email)

        if user is not None:
            verification = await self._verifications.issue(
                user.id,
                email,
                VerificationType.LOGIN,
                timedelta(minutes=self._settings.login_code_ttl_minutes),
            )
            try:
                await self._email.send_login_code(
                    email,
                    verification.verification_code or "",
                    ttl_minutes=self._settings.login_code_ttl_minutes,
                )
            except EmailDeliveryError:
                logger.warning(f"Failed to send login code to user {user.id}")
            await self._audit.log(
                "login_code_requested",
                AuditCategory.AUTHENTICATION,
                "Sign-in code requested",
                context=context,
                target_user_id=user.id,
                event_data={"remember_me": request.remember_me},
            )
        else:
            await self._audit.log(
                "login_code_requested_nonexistent",
                AuditCategory.SECURITY,
                "Sign-in code requested for unknown email",
                context=context,
                event_data={"email": email},
                severity=AuditSeverity.LOW,
            )

        await self._rate_limiter.record_attempt(
            SEND_CODE_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        return MessageResponse(
            message="If an account exists for this email, a sign-in code has been sent."
        )

    async def verify_login_code(
        self, request: VerifyLoginRequest, context: SecurityContext
    ) -> LoginResponse:
        """
        Exchange a sign-in code for a session.

        A success forgives earlier failed attempts from the same IP. Repeated
        failures that look automated lock the IP out.

        Raises:
            InvalidCodeError / CodeExpiredError / AlreadyVerifiedError: For a bad code
            AccountLockedError: When the failure pushes the IP over the risk threshold
        """
        email = normalize_email(str(request.email))
        try:
            await self._verifications.verify_code(request.code, VerificationType.LOGIN, email)
        except VerificationError as e:
            await self._handle_login_failure(email, e, context)
            raise

        user = await self._identity.get_user_by_email(email)
        if user is None:
            raise UserNotFoundError()
        session = await self._identity.issue_session(email)

        await self._rate_limiter.record_attempt(
            LOGIN_ENDPOINT, context.ip_address, context.user_agent, True, email
        )
        await self._audit.log(
            "user_login",
            AuditCategory.AUTHENTICATION,
            "User signed in with one-time code",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            event_data={"remember_me": request.remember_me},
        )
        return LoginResponse(
            message="Signed in successfully",
            user=session.user or user,
            session=session,
            remember_me=request.remember_me,
            session_max_age=(
                REMEMBER_ME_MAX_AGE_SECONDS if request.remember_me else SESSION_MAX_AGE_SECONDS
            ),
        )

    async def _handle_login_failure(
        self, email: str, error: VerificationError, context: SecurityContext
    ) -> None:
        await self._rate_limiter.record_attempt(
            LOGIN_ENDPOINT, context.ip_address, context.user_agent, False, email
        )
        risk = await self._rate_limiter.assess_risk(context.ip_address)
        await self._audit.log(
            "login_failed",
            AuditCategory.AUTHENTICATION,
            "Failed sign-in attempt",
            context=context,
            event_data={"email": email, "reason": error.reason, "risk_score": risk.score},
            severity=AuditSeverity.HIGH if risk.suspicious else AuditSeverity.MEDIUM,
            success=False,
        )
        if risk.score >= BLOCK_THRESHOLD:
            await self._rate_limiter.block_ip(
                context.ip_address, LOCKOUT_MINUTES, "Suspicious sign-in activity"
            )
            await self._audit.log(
                "ip_blocked",
                AuditCategory.SECURITY,
                "IP blocked after suspicious sign-in activity",
                context=context,
                event_data={"risk_score": risk.score, "reasons": risk.reasons},
                severity=AuditSeverity.CRITICAL,
            )
            raise AccountLockedError(LOCKOUT_MINUTES) from error

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def refresh(self, refresh_token: str, context: SecurityContext) -> AuthSessionResponse:
        """
        Exchange a refresh token for a new session.

        Raises:
            SessionTokenError: With TOKEN_EXPIRED, INVALID_TOKEN, TOKEN_REVOKED
                or INVALID_REFRESH_TOKEN
        """
        try:
            session = await self._identity.refresh_session(refresh_token)
        except SessionTokenError:
            await self._rate_limiter.record_attempt(
                REFRESH_ENDPOINT, context.ip_address, context.user_agent, False
            )
            raise

        await self._rate_limiter.record_attempt(
            REFRESH_ENDPOINT, context.ip_address, context.user_agent, True
        )
        return AuthSessionResponse(
            message="Session refreshed",
            user=session.user,
            session=session,
        )

    async def logout(
        self, user: Optional[AuthenticatedUser], context: SecurityContext
    ) -> LogoutResponse:
        """Revoke the caller's session if there is one. Always succeeds."""
        if user is not None:
            if user.access_token:
                try:
                    await self._identity.sign_out(user.access_token)
                except FamilyHubError:
                    logger.warning(f"Provider sign-out failed for user {user.id}")
            await self._audit.log(
                "user_logout",
                AuditCategory.AUTHENTICATION,
                "User signed out",
                context=context,
                actor_user_id=user.id,
                target_user_id=user.id,
            )
        return LogoutResponse()

    # -------------------------------------------------------------------------
    # Session and account
    # -------------------------------------------------------------------------

    async def get_session(self, user: Optional[AuthenticatedUser]) -> SessionResponse:
        """
        Describe the caller's session.

        Anonymous callers and expired tokens get ``authenticated: false``
        rather than an error.
        """
        if user is None or user.session_expires_at is None:
            return SessionResponse(message="No active session", authenticated=False)

        expires_at = int(user.session_expires_at.timestamp())
        remaining = user.session_expires_at - datetime.now(timezone.utc)
        expires_in = max(0, int(remaining.total_seconds()))
        profile, families = await self._load_account(user.id)
        return SessionResponse(
            message="Session active",
            authenticated=True,
            session=SessionStatus(expires_at=expires_at, expires_in=expires_in),
            user=user,
            profile=profile,
            families=families,
        )

    async def get_account(
        self, user: AuthenticatedUser, context: SecurityContext
    ) -> CurrentUserResponse:
        """Profile and family memberships of the signed-in user."""
        profile, families = await self._load_account(user.id)
        await self._audit.log(
            "user_profile_accessed",
            AuditCategory.ACCOUNT,
            "User profile data accessed",
            context=context,
            actor_user_id=user.id,
            target_user_id=user.id,
            event_data={"family_count": len(families)},
            severity=AuditSeverity.LOW,
        )
        return CurrentUserResponse(
            user=user,
            profile=profile,
            families=families,
            profile_complete=bool(profile and profile.first_name and profile.last_name),
            has_families=bool(families),
            two_factor_enabled=bool(profile and profile.two_factor_enabled),
        )

    async def _load_account(
        self, user_id: str
    ) -> tuple[Optional[UserProfile], list[FamilySummary]]:
        profile = self._profiles.get_profile(user_id)
        families = await self._families.list_families(user_id)
        return profile, families
