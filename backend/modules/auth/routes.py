"""
Authentication API endpoints.

Passwordless signup, email verification, one-time-code login and
session refresh/logout. Mounted under /api/auth.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_auth_service
from api.middleware.auth import get_current_user, get_optional_user
from api.middleware.context import get_security_context, rate_limit
from modules.identity.models import AuthSessionResponse
from shared.models import AuthenticatedUser, SecurityContext

from .models import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    RefreshRequest,
    ResendVerificationRequest,
    SessionResponse,
    SignupRequest,
    SignupResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
    VerifyLoginRequest,
)
from .service import (
    LOGIN_ENDPOINT,
    REFRESH_ENDPOINT,
    RESEND_VERIFICATION_ENDPOINT,
    SEND_CODE_ENDPOINT,
    SIGNUP_ENDPOINT,
    VERIFY_EMAIL_ENDPOINT,
    AuthService,
)

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    dependencies=[Depends(rate_limit(SIGNUP_ENDPOINT))],
)
async def signup(
    request: SignupRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> SignupResponse:
    """
    Create an account without a password.

    A six-digit verification code is emailed to the address. The response
    carries the account's recovery code, which is shown only once.
    """
    return await service.signup(request, context)


@router.post(
    "/verify-email",
    response_model=VerifyEmailResponse,
    dependencies=[Depends(rate_limit(VERIFY_EMAIL_ENDPOINT))],
)
async def verify_email(
    request: VerifyEmailRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> VerifyEmailResponse:
    """Verify an email address with a code (or legacy token) and sign in."""
    return await service.verify_email(request, context)


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(RESEND_VERIFICATION_ENDPOINT))],
)
async def resend_verification(
    request: ResendVerificationRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    return await service.resend_verification(request, context)


@router.post(
    "/login",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(SEND_CODE_ENDPOINT))],
)
async def login(
    request: LoginRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a sign-in code. The response does not reveal whether the account exists."""
    return await service.request_login_code(request, context)


@router.post(
    "/login/verify",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limit(LOGIN_ENDPOINT))],
)
async def verify_login(
    request: VerifyLoginRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange a sign-in code for a session."""
    return await service.verify_login_code(request, context)


@router.post(
    "/refresh",
    response_model=AuthSessionResponse,
    dependencies=[Depends(rate_limit(REFRESH_ENDPOINT))],
)
async def refresh(
    request: RefreshRequest,
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> AuthSessionResponse:
    return await service.refresh(request.refresh_token, context)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> LogoutResponse:
    """Sign out. Succeeds even without a valid session."""
    return await service.logout(user, context)


@router.get("/session", response_model=SessionResponse)
async def get_session(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    """
    Report whether the caller is signed in and when the access token expires.

    Not rate limited; clients call it on every authenticated page load.
    """
    return await service.get_session(user)


@router.get("/user", response_model=CurrentUserResponse)
async def get_user(
    user: AuthenticatedUser = Depends(get_current_user),
    context: SecurityContext = Depends(get_security_context),
    service: AuthService = Depends(get_auth_service),
) -> CurrentUserResponse:
    """Return the signed-in user's profile and families."""
    return await service.get_account(user, context)
