from dataclasses import replace

import pytest

from grandvista.application.services.password_reset_service import PasswordResetService
from grandvista.db.models.enums import ResetMethod, ResetSessionStatus, VerificationContext
from grandvista.exceptions import (
    ExpiredError,
    InvalidCodeError,
    InvalidTokenError,
    NotFoundError,
    SessionClosedError,
    VerificationStepError,
    WeakPasswordError,
)
from grandvista.security import verify_password

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, FakeAdminRepo, FakeResetSessionRepo, make_admin

NEW_PASSWORD = "N3w-Passw0rd!"


@pytest.fixture
def service(admin_repo, session_repo, verification_repo, notifier, clock):
    return PasswordResetService(
        admin_repo=admin_repo,
        session_repo=session_repo,
        verification_repo=verification_repo,
        notifier=notifier,
        app_url="https://admin.example.com",
        clock=clock,
    )


def start_by_email(service, notifier):
    result = service.initiate_password_reset(ResetMethod.EMAIL, ADMIN_EMAIL)
    return result["sessionId"], notifier.last_email_param("token")


def password_is(admin_repo, admin, password):
    return verify_password(password, admin_repo.admins[admin.id].password_hash)


def test_identity_masks_contact(service):
    identity = service.get_registered_admin_contact()
    assert identity == {
        "maskedEmail": "a****@grandvista.com",
        "phoneEnding": "4567",
        "phoneVerified": True,
        "hasPhone": True,
    }


def test_email_then_sms_then_reset(service, admin, admin_repo, session_repo, notifier):
    session_id, token = start_by_email(service, notifier)
    assert notifier.last_email_param("sessionId") == session_id
    assert "/admin/reset-password?" in notifier.emails[-1]["text"]

    assert service.verify_email_for_reset(session_id, token) == {"smsRequired": True}
    assert session_repo.sessions[session_id].status == ResetSessionStatus.EMAIL_VERIFIED
    assert notifier.sms[-1]["to"] == admin.phone_number

    assert service.verify_sms_for_reset(session_id, notifier.last_sms_code()) == {"smsVerified": True}
    assert session_repo.sessions[session_id].status == ResetSessionStatus.SMS_VERIFIED

    assert service.complete_password_reset(session_id, NEW_PASSWORD) == {"success": True}
    assert session_repo.sessions[session_id].status == ResetSessionStatus.COMPLETED
    assert password_is(admin_repo, admin, NEW_PASSWORD)
    assert not password_is(admin_repo, admin, ADMIN_PASSWORD)


def test_initiate_by_email_response_shape(service):
    result = service.initiate_password_reset(ResetMethod.EMAIL, "  ADMIN@grandvista.com ")
    assert result["maskedEmail"] == "a****@grandvista.com"
    assert result["maskedPhone"] is None
    assert "debugCode" not in result


def test_initiate_unknown_email(service, session_repo):
    with pytest.raises(NotFoundError):
        service.initiate_password_reset(ResetMethod.EMAIL, "nobody@grandvista.com")
    assert session_repo.sessions == {}


def test_reset_before_verification_is_refused(service, admin, admin_repo, notifier):
    session_id, _ = start_by_email(service, notifier)
    with pytest.raises(VerificationStepError):
        service.complete_password_reset(session_id, NEW_PASSWORD)
    assert password_is(admin_repo, admin, ADMIN_PASSWORD)


def test_reset_after_email_only_is_refused_when_sms_required(service, notifier):
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    with pytest.raises(VerificationStepError):
        service.complete_password_reset(session_id, NEW_PASSWORD)


def test_sms_before_email_is_refused(service, notifier):
    session_id, _ = start_by_email(service, notifier)
    with pytest.raises(VerificationStepError):
        service.verify_sms_for_reset(session_id, "123456")


def test_wrong_email_token(service, session_repo, notifier):
    session_id, _ = start_by_email(service, notifier)
    with pytest.raises(InvalidTokenError):
        service.verify_email_for_reset(session_id, "0" * 48)
    assert session_repo.sessions[session_id].status == ResetSessionStatus.PENDING


def test_wrong_sms_code_keeps_session_usable(service, notifier):
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    code = notifier.last_sms_code()
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidCodeError):
        service.verify_sms_for_reset(session_id, wrong)
    assert service.verify_sms_for_reset(session_id, code) == {"smsVerified": True}


def test_verify_email_twice_does_not_resend_sms(service, notifier):
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    assert service.verify_email_for_reset(session_id, token) == {"smsRequired": True}
    assert len(notifier.sms) == 1


def test_admin_without_phone_skips_sms(verification_repo, notifier, clock):
    admin = make_admin(phone=None)
    admin_repo = FakeAdminRepo([admin])
    service = PasswordResetService(admin_repo, FakeResetSessionRepo(admin_repo), verification_repo, notifier,
                                   clock=clock)

    session_id, token = start_by_email(service, notifier)
    assert service.verify_email_for_reset(session_id, token) == {"smsRequired": False}
    assert notifier.sms == []
    assert service.complete_password_reset(session_id, NEW_PASSWORD) == {"success": True}
    assert password_is(admin_repo, admin, NEW_PASSWORD)


def test_sms_unconfigured_skips_sms(service, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    assert service.verify_email_for_reset(session_id, token) == {"smsRequired": False}
    assert service.complete_password_reset(session_id, NEW_PASSWORD) == {"success": True}


def test_phone_initiated_flow(service, admin, admin_repo, notifier):
    result = service.initiate_password_reset(ResetMethod.PHONE, "+1 (555) 123-4567")
    session_id = result["sessionId"]
    assert result["maskedPhone"] == "••••4567"
    assert result["maskedEmail"] is None
    assert notifier.emails == []

    with pytest.raises(VerificationStepError):
        service.verify_email_for_reset(session_id, "anything")

    service.verify_sms_for_reset(session_id, notifier.last_sms_code())
    service.complete_password_reset(session_id, NEW_PASSWORD)
    assert password_is(admin_repo, admin, NEW_PASSWORD)


def test_phone_initiated_unknown_number(service):
    with pytest.raises(NotFoundError):
        service.initiate_password_reset(ResetMethod.PHONE, "+449999999999")


def test_phone_initiated_without_sms_hides_code_by_default(service, notifier):
    notifier.sms_configured = False
    result = service.initiate_password_reset(ResetMethod.PHONE, "+15551234567")
    assert "debugCode" not in result
    assert notifier.sms == []


def test_phone_initiated_without_sms_exposes_debug_code_when_enabled(service, notifier):
    notifier.sms_configured = False
    service.expose_debug_codes = True
    result = service.initiate_password_reset(ResetMethod.PHONE, "+15551234567")
    assert len(result["debugCode"]) == 6

    service.verify_sms_for_reset(result["sessionId"], result["debugCode"])
    assert service.complete_password_reset(result["sessionId"], NEW_PASSWORD) == {"success": True}


def test_session_expires_after_an_hour(service, session_repo, notifier, clock):
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    service.verify_sms_for_reset(session_id, notifier.last_sms_code())

    clock.advance(minutes=61)
    with pytest.raises(ExpiredError):
        service.complete_password_reset(session_id, NEW_PASSWORD)
    assert session_repo.sessions[session_id].status == ResetSessionStatus.EXPIRED

    clock.advance(minutes=-61)
    with pytest.raises(ExpiredError):
        service.complete_password_reset(session_id, NEW_PASSWORD)


def test_email_token_expiry_closes_session(service, session_repo, notifier, clock):
    session_id, token = start_by_email(service, notifier)
    clock.advance(minutes=16)
    with pytest.raises(ExpiredError):
        service.verify_email_for_reset(session_id, token)
    assert session_repo.sessions[session_id].status == ResetSessionStatus.EXPIRED


def test_sms_code_expiry(service, notifier, clock):
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    clock.advance(minutes=11)
    with pytest.raises(ExpiredError):
        service.verify_sms_for_reset(session_id, notifier.last_sms_code())


def test_unknown_session(service):
    with pytest.raises(NotFoundError):
        service.verify_email_for_reset("missing", "token")


def test_weak_password_keeps_session_open(service, session_repo, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)

    with pytest.raises(WeakPasswordError):
        service.complete_password_reset(session_id, "password")
    assert session_repo.sessions[session_id].status == ResetSessionStatus.SMS_VERIFIED
    assert service.complete_password_reset(session_id, NEW_PASSWORD) == {"success": True}


def test_reset_completes_exactly_once(service, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    service.complete_password_reset(session_id, NEW_PASSWORD)

    with pytest.raises(SessionClosedError):
        service.complete_password_reset(session_id, "An0ther-Passw0rd!")
    with pytest.raises(SessionClosedError):
        service.verify_email_for_reset(session_id, token)


def test_concurrent_completion_loses_conditional_write(service, admin, admin_repo, session_repo, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    stale = replace(session_repo.sessions[session_id])

    service.complete_password_reset(session_id, NEW_PASSWORD)

    # A second request that loaded the session before the first one committed
    session_repo.get = lambda _id: replace(stale)
    with pytest.raises(SessionClosedError):
        service.complete_password_reset(session_id, "An0ther-Passw0rd!")
    assert password_is(admin_repo, admin, NEW_PASSWORD)


def test_failed_password_write_keeps_session_usable(service, admin, admin_repo, session_repo, notifier,
                                                   monkeypatch):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)

    def broken_save(_admin):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(admin_repo, "save", broken_save)
    with pytest.raises(RuntimeError):
        service.complete_password_reset(session_id, NEW_PASSWORD)
    assert session_repo.sessions[session_id].status == ResetSessionStatus.SMS_VERIFIED
    assert password_is(admin_repo, admin, ADMIN_PASSWORD)

    monkeypatch.undo()
    assert service.complete_password_reset(session_id, NEW_PASSWORD) == {"success": True}
    assert password_is(admin_repo, admin, NEW_PASSWORD)


def test_completion_expires_pending_reset_verifications(service, admin, verification_repo, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    service.complete_password_reset(session_id, NEW_PASSWORD)
    assert verification_repo.expire_calls == [(admin.id, VerificationContext.PASSWORD_RESET, None)]


def test_completion_invalidates_the_email_link(service, session_repo, notifier):
    notifier.sms_configured = False
    session_id, token = start_by_email(service, notifier)
    service.verify_email_for_reset(session_id, token)
    service.complete_password_reset(session_id, NEW_PASSWORD)
    stored = session_repo.sessions[session_id]
    assert stored.sms_code_hash is None
    assert stored.email_token_hash is not None
