"""Tests for account recovery."""

import pytest
import pytest_asyncio

from modules.recovery.exceptions import (
    BackupEmailConflictError,
    BackupEmailNotFoundError,
    InvalidRecoveryError,
)
from modules.recovery.models import (
    GENERIC_BACKUP_MESSAGE,
    GENERIC_RESET_MESSAGE,
    AddBackupEmailRequest,
    BackupEmailRecoveryRequest,
    BackupEmailRecoveryVerifyRequest,
    ForgotPasswordRequest,
    RecoveryCodeVerifyRequest,
)
from modules.tokens.exceptions import InvalidTokenError
from modules.verification.exceptions import InvalidCodeError
from shared.models import AuthenticatedUser

EMAIL = "ada@example.com"
BACKUP = "ada.backup@example.com"


@pytest.fixture
def service(container):
    return container.recovery


@pytest_asyncio.fixture
async def user(container):
    return await container.identity.create_user(EMAIL, {"first_name": "Ada"})


@pytest.fixture
def signed_in(user):
    return AuthenticatedUser(id=user.id, email=user.email, email_verified=True)


class TestRecoveryCodes:
    @pytest.mark.asyncio
    async def test_code_signs_in_once(self, service, container, user, context):
        code, stored = await service.issue_recovery_code(user.id)
        assert stored.code_hint == code[-3:]

        response = await service.recover_with_code(
            RecoveryCodeVerifyRequest(email=EMAIL, recovery_code=code.lower()), context
        )

        assert response.session is not None
        assert response.must_regenerate_recovery_code
        assert container.audit_store.find("account_recovered")

        with pytest.raises(InvalidRecoveryError):
            await service.recover_with_code(
                RecoveryCodeVerifyRequest(email=EMAIL, recovery_code=code), context
            )

    @pytest.mark.asyncio
    async def test_new_code_supersedes_old(self, service, user, context):
        old, _ = await service.issue_recovery_code(user.id)
        await service.issue_recovery_code(user.id)

        with pytest.raises(InvalidRecoveryError):
            await service.recover_with_code(
                RecoveryCodeVerifyRequest(email=EMAIL, recovery_code=old), context
            )

    @pytest.mark.asyncio
    async def test_unknown_account_same_error(self, service, context):
        with pytest.raises(InvalidRecoveryError) as exc_info:
            await service.recover_with_code(
                RecoveryCodeVerifyRequest(email="nobody@example.com", recovery_code="ABCDE-12345"),
                context,
            )
        assert exc_info.value.code == "INVALID_RECOVERY"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_plaintext_never_stored(self, service, container, user):
        code, _ = await service.issue_recovery_code(user.id)
        stored = container.recovery_repository.codes
        assert all(code not in row.model_dump_json() for row in stored.values())

    @pytest.mark.asyncio
    async def test_regenerate_audits_without_code(self, service, container, signed_in, context):
        response = await service.regenerate_recovery_code(signed_in, context)

        event = container.audit_store.find("recovery_code_generated")[0]
        assert response.recovery_code not in event.model_dump_json()


class TestForgotPassword:
    @pytest.mark.asyncio
    async def test_identical_response_for_unknown_email(self, service, user, context, outbox):
        known = await service.forgot_password(ForgotPasswordRequest(email=EMAIL), context)
        unknown = await service.forgot_password(
            ForgotPasswordRequest(email="nobody@example.com"), context
        )

        assert known == unknown
        assert known.message == GENERIC_RESET_MESSAGE
        assert len(outbox.sent_to(EMAIL, "recovery")) == 1
        assert not outbox.sent_to("nobody@example.com")

    @pytest.mark.asyncio
    async def test_magic_link_single_use(self, service, user, context, outbox):
        await service.forgot_password(ForgotPasswordRequest(email=EMAIL), context)
        raw = outbox.last_link_token(EMAIL, "recovery")

        response = await service.redeem_magic_link(raw, context)
        assert response.session is not None
        assert response.user.id == user.id

        with pytest.raises(InvalidTokenError):
            await service.redeem_magic_link(raw, context)

    @pytest.mark.asyncio
    async def test_email_outage_still_generic(self, service, user, context, outbox):
        outbox.fail = True
        response = await service.forgot_password(ForgotPasswordRequest(email=EMAIL), context)
        assert response.message == GENERIC_RESET_MESSAGE


class TestBackupEmail:
    @pytest.mark.asyncio
    async def test_add_and_confirm(self, service, signed_in, context, outbox):
        added = await service.add_backup_email(signed_in, AddBackupEmailRequest(email=BACKUP), context)
        assert not added.is_verified

        code = outbox.last_code(BACKUP)
        confirmed = await service.confirm_backup_email(signed_in, code, context)
        assert confirmed.is_verified

    @pytest.mark.asyncio
    async def test_backup_cannot_equal_primary(self, service, signed_in, context):
        with pytest.raises(BackupEmailConflictError):
            await service.add_backup_email(signed_in, AddBackupEmailRequest(email=EMAIL), context)

    @pytest.mark.asyncio
    async def test_wrong_confirmation_code(self, service, signed_in, context, outbox):
        await service.add_backup_email(signed_in, AddBackupEmailRequest(email=BACKUP), context)
        wrong = "111111" if outbox.last_code(BACKUP) != "111111" else "222222"
        with pytest.raises(InvalidCodeError):
            await service.confirm_backup_email(signed_in, wrong, context)

    @pytest.mark.asyncio
    async def test_confirm_without_pending(self, service, signed_in, context):
        with pytest.raises(BackupEmailNotFoundError):
            await service.confirm_backup_email(signed_in, "123456", context)

    @pytest.mark.asyncio
    async def test_recover_through_backup_email(self, service, signed_in, context, outbox):
        await service.add_backup_email(signed_in, AddBackupEmailRequest(email=BACKUP), context)
        await service.confirm_backup_email(signed_in, outbox.last_code(BACKUP), context)

        response = await service.request_backup_email_code(
            BackupEmailRecoveryRequest(email=EMAIL), context
        )
        assert response.message == GENERIC_BACKUP_MESSAGE
        code = outbox.last_code(BACKUP, "recovery")

        session = await service.verify_backup_email_code(
            BackupEmailRecoveryVerifyRequest(email=EMAIL, code=code), context
        )
        assert session.session is not None

    @pytest.mark.asyncio
    async def test_unverified_backup_gets_nothing(self, service, signed_in, context, outbox):
        await service.add_backup_email(signed_in, AddBackupEmailRequest(email=BACKUP), context)
        sent_before = len(outbox.messages)

        response = await service.request_backup_email_code(
            BackupEmailRecoveryRequest(email=EMAIL), context
        )

        assert response.message == GENERIC_BACKUP_MESSAGE
        assert len(outbox.messages) == sent_before

    @pytest.mark.asyncio
    async def test_bad_backup_code_is_uniform(self, service, user, context):
        with pytest.raises(InvalidRecoveryError):
            await service.verify_backup_email_code(
                BackupEmailRecoveryVerifyRequest(email=EMAIL, code="123456"), context
            )
