"""
Account recovery API endpoints.

Mounted under /api/auth alongside the core auth routes.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_recovery_service
from api.middleware.auth import get_current_user
from api.middleware.context import get_security_context, rate_limit
from modules.identity.models import AuthSessionResponse
from shared.models import AuthenticatedUser, SecurityContext

from .models import (
    AddBackupEmailRequest,
    BackupEmailRecoveryRequest,
    BackupEmailRecoveryVerifyRequest,
    BackupEmailResponse,
    ConfirmBackupEmailRequest,
    EmailSentResponse,
    ForgotPasswordRequest,
    MagicLinkRequest,
    RecoveryCodeResponse,
    RecoveryCodeVerifyRequest,
    RecoverySessionResponse,
)
from .service import FORGOT_PASSWORD_ENDPOINT, RECOVERY_ENDPOINT, RecoveryService

router = APIRouter()


@router.post(
    "/forgot-password",
    response_model=EmailSentResponse,
    dependencies=[Depends(rate_limit(FORGOT_PASSWORD_ENDPOINT))],
)
async def forgot_password(
    request: ForgotPasswordRequest,
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> EmailSentResponse:
    """
    Request a sign-in link by email.

    Responds the same way whether or not the account exists.
    """
    return await service.forgot_password(request, context)


@router.post(
    "/magic-link",
    response_model=AuthSessionResponse,
    dependencies=[Depends(rate_limit(RECOVERY_ENDPOINT))],
)
async def redeem_magic_link(
    request: MagicLinkRequest,
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> AuthSessionResponse:
    """Exchange an emailed sign-in link for a session."""
    return await service.redeem_magic_link(request.token, context)


@router.post(
    "/recovery/verify-code",
    response_model=RecoverySessionResponse,
    dependencies=[Depends(rate_limit(RECOVERY_ENDPOINT))],
)
async def verify_recovery_code(
    request: RecoveryCodeVerifyRequest,
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> RecoverySessionResponse:
    """Sign in with a recovery code."""
    return await service.recover_with_code(request, context)


@router.post("/recovery/generate-code", response_model=RecoveryCodeResponse)
async def generate_recovery_code(
    user: AuthenticatedUser = Depends(get_current_user),
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> RecoveryCodeResponse:
    """Replace the signed-in user's recovery code."""
    return await service.regenerate_recovery_code(user, context)


@router.post(
    "/recovery/backup-email",
    response_model=EmailSentResponse,
    dependencies=[Depends(rate_limit(FORGOT_PASSWORD_ENDPOINT))],
)
async def request_backup_email_code(
    request: BackupEmailRecoveryRequest,
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> EmailSentResponse:
    """Send a recovery code to the account's verified backup email."""
    return await service.request_backup_email_code(request, context)


@router.post(
    "/recovery/backup-email/verify",
    response_model=RecoverySessionResponse,
    dependencies=[Depends(rate_limit(RECOVERY_ENDPOINT))],
)
async def verify_backup_email_code(
    request: BackupEmailRecoveryVerifyRequest,
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> RecoverySessionResponse:
    """Sign in with a code sent to the backup email."""
    return await service.verify_backup_email_code(request, context)


@router.post("/backup-email", response_model=BackupEmailResponse, status_code=201)
async def add_backup_email(
    request: AddBackupEmailRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> BackupEmailResponse:
    """Add a backup email for account recovery."""
    return await service.add_backup_email(user, request, context)


@router.post("/backup-email/confirm", response_model=BackupEmailResponse)
async def confirm_backup_email(
    request: ConfirmBackupEmailRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    context: SecurityContext = Depends(get_security_context),
    service: RecoveryService = Depends(get_recovery_service),
) -> BackupEmailResponse:
    """Confirm a backup email with the code sent to it."""
    return await service.confirm_backup_email(user, request.code, context)
