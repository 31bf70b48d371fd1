import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

from ...exceptions import (
    ExpiredError,
    InvalidCodeError,
    InvalidTokenError,
    NotFoundError,
    SessionClosedError,
    VerificationStepError,
    WeakPasswordError,
)
from ...security import (
    generate_numeric_code,
    generate_token,
    hash_password,
    hash_secret,
    mask_email,
    mask_phone,
    normalize_email,
    normalize_phone,
    secrets_match,
    validate_password_strength,
)
from ...db.models.enums import ResetMethod, ResetSessionStatus, VerificationContext
from ..ports.admin_repo import AdminDto, AdminRepository
from ..ports.notifier import Notifier
from ..ports.reset_session_repo import ResetSessionDto, ResetSessionRepository
from ..ports.verification_repo import VerificationRepository

logger = logging.getLogger(__name__)

EMAIL_TOKEN_EXPIRY_MINUTES = 15
SESSION_EXPIRY_MINUTES = 60
SMS_CODE_EXPIRY_MINUTES = 10
EMAIL_TOKEN_BYTES = 24
SMS_CODE_DIGITS = 6


@dataclass
class PasswordResetService:
    """Forgotten-password recovery.

    Transitions (terminal states starred):

        pending --email--> email-verified --sms--> sms-verified --password--> completed*
        pending --email, no SMS possible--> sms-verified --password--> completed*
        pending --sms (phone-only session)--> sms-verified --password--> completed*
        any --expires_at passed--> expired*

    Expiry is evaluated lazily whenever a session is loaded.
    """

    admin_repo: AdminRepository
    session_repo: ResetSessionRepository
    verification_repo: VerificationRepository
    notifier: Notifier
    app_url: str = "http://localhost:5173"
    expose_debug_codes: bool = False
    clock: Callable[[], datetime] = field(default=datetime.utcnow)

    def _in(self, minutes: int) -> datetime:
        return self.clock() + timedelta(minutes=minutes)

    def _get_admin(self, admin_id: str) -> AdminDto:
        admin = self.admin_repo.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin account not found")
        return admin

    def _sms_body(self, code: str) -> str:
        return f"Your password reset code is {code}. It expires in {SMS_CODE_EXPIRY_MINUTES} minutes."

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def get_registered_admin_contact(self) -> Dict[str, Any]:
        admin = self.admin_repo.get_primary()
        if not admin:
            raise NotFoundError("Admin account not found")
        has_phone = bool(admin.phone_number)
        return {
            "maskedEmail": mask_email(admin.email),
            "phoneEnding": admin.phone_number[-4:] if has_phone else None,
            "phoneVerified": bool(admin.phone_verified),
            "hasPhone": has_phone,
        }

    # ------------------------------------------------------------------
    # Step 0: start a session
    # ------------------------------------------------------------------
    def initiate_password_reset(self, method: ResetMethod, value: str) -> Dict[str, Any]:
        if method == ResetMethod.EMAIL:
            return self._initiate_by_email(value)
        if method == ResetMethod.PHONE:
            return self._initiate_by_phone(value)
        raise ValueError(f"Unsupported reset method: {method}")

    def _initiate_by_email(self, value: str) -> Dict[str, Any]:
        admin = self.admin_repo.get_by_email(normalize_email(value))
        if not admin:
            raise NotFoundError(
                "We couldn't start the password reset process. The provided email was not found."
            )

        token = generate_token(EMAIL_TOKEN_BYTES)
        session = self.session_repo.create(
            admin_id=admin.id,
            email_token_hash=hash_secret(token),
            email_token_expires_at=self._in(EMAIL_TOKEN_EXPIRY_MINUTES),
            expires_at=self._in(SESSION_EXPIRY_MINUTES),
        )

        query = urlencode({"sessionId": session.id, "token": token})
        verification_url = f"{self.app_url.rstrip('/')}/admin/reset-password?{query}"
        self.notifier.send_email(
            to=admin.email,
            subject="Reset your admin password",
            html=(
                f"<p>Hi {admin.full_name or 'there'},</p>"
                "<p>You requested to reset your admin password. Click the link below to verify "
                "your email address and continue:</p>"
                f'<p><a href="{verification_url}">Verify Email &amp; Continue</a></p>'
                f"<p>This link expires in {EMAIL_TOKEN_EXPIRY_MINUTES} minutes. "
                "If you did not request a reset, please ignore this email.</p>"
            ),
            text=f"Continue your password reset: {verification_url}",
        )
        logger.info(f"Password reset session {session.id} started by email for admin {admin.id}")
        return {
            "sessionId": session.id,
            "maskedEmail": mask_email(admin.email),
            "maskedPhone": None,
        }

    def _initiate_by_phone(self, value: str) -> Dict[str, Any]:
        phone = normalize_phone(value)
        # Linear scan: stored numbers may carry separators. Fine for the handful of admins this serves.
        matched = next(
            (a for a in self.admin_repo.list_all() if a.phone_number and normalize_phone(a.phone_number) == phone),
            None,
        )
        if not phone or not matched:
            raise NotFoundError(
                "We couldn't start the password reset process. The provided phone number was not found."
            )

        code = generate_numeric_code(SMS_CODE_DIGITS)
        session = self.session_repo.create(
            admin_id=matched.id,
            sms_code_hash=hash_secret(code),
            sms_code_expires_at=self._in(SMS_CODE_EXPIRY_MINUTES),
            expires_at=self._in(SESSION_EXPIRY_MINUTES),
        )

        result: Dict[str, Any] = {
            "sessionId": session.id,
            "maskedEmail": None,
            "maskedPhone": mask_phone(matched.phone_number),
        }
        if self.notifier.is_sms_configured():
            self.notifier.send_sms(matched.phone_number, self._sms_body(code))
        else:
            logger.warning(f"SMS not configured - password reset code for session {session.id}: {code}")
            if self.expose_debug_codes:
                result["debugCode"] = code
        logger.info(f"Password reset session {session.id} started by phone for admin {matched.id}")
        return result

    # ------------------------------------------------------------------
    # Session loading with lazy expiry
    # ------------------------------------------------------------------
    def ensure_session(self, session_id: str) -> ResetSessionDto:
        session = self.session_repo.get(session_id)
        if not session:
            raise NotFoundError("Password reset session not found")
        if session.status == ResetSessionStatus.EXPIRED:
            raise ExpiredError("Password reset session has expired")
        if session.expires_at < self.clock():
            session.status = ResetSessionStatus.EXPIRED
            self.session_repo.save(session)
            raise ExpiredError("Password reset session has expired")
        if session.status == ResetSessionStatus.COMPLETED:
            raise SessionClosedError("Password reset session has already been completed")
        return session

    # ------------------------------------------------------------------
    # Step 1: email token
    # ------------------------------------------------------------------
    def verify_email_for_reset(self, session_id: str, token: str) -> Dict[str, bool]:
        session = self.ensure_session(session_id)

        if session.email_verified:
            return {"smsRequired": not session.sms_verified}

        if not session.email_token_hash:
            raise VerificationStepError("This reset session does not use email verification")

        if session.email_token_expires_at and session.email_token_expires_at < self.clock():
            session.status = ResetSessionStatus.EXPIRED
            self.session_repo.save(session)
            raise ExpiredError("Email verification token has expired")

        if not secrets_match(token.strip(), session.email_token_hash):
            raise InvalidTokenError("Invalid email verification token")

        admin = self._get_admin(session.admin_id)
        session.email_verified = True

        if not admin.phone_number or not self.notifier.is_sms_configured():
            # No second factor available: the email link alone satisfies the flow
            session.sms_verified = True
            session.status = ResetSessionStatus.SMS_VERIFIED
            session.sms_code_hash = None
            session.sms_code_expires_at = None
            self.session_repo.save(session)
            logger.info(f"Reset session {session.id}: email verified, SMS step auto-satisfied")
            return {"smsRequired": False}

        code = generate_numeric_code(SMS_CODE_DIGITS)
        session.status = ResetSessionStatus.EMAIL_VERIFIED
        session.sms_code_hash = hash_secret(code)
        session.sms_code_expires_at = self._in(SMS_CODE_EXPIRY_MINUTES)
        self.notifier.send_sms(admin.phone_number, self._sms_body(code))
        self.session_repo.save(session)
        logger.info(f"Reset session {session.id}: email verified, SMS code sent")
        return {"smsRequired": True}

    # ------------------------------------------------------------------
    # Step 2: SMS code
    # ------------------------------------------------------------------
    def verify_sms_for_reset(self, session_id: str, code: str) -> Dict[str, bool]:
        session = self.ensure_session(session_id)

        # Sessions started by email must pass the email step first; phone-only sessions skip it
        if session.email_token_hash and not session.email_verified:
            raise VerificationStepError("Email verification must be completed first")

        if session.sms_verified and not session.sms_code_hash:
            return {"smsVerified": True}

        if not session.sms_code_hash or not session.sms_code_expires_at:
            raise VerificationStepError("SMS verification was not initiated")

        if session.sms_code_expires_at < self.clock():
            raise ExpiredError("SMS verification code has expired")

        if not secrets_match(code.strip(), session.sms_code_hash):
            raise InvalidCodeError("Invalid SMS verification code")

        session.sms_verified = True
        session.status = ResetSessionStatus.SMS_VERIFIED
        self.session_repo.save(session)
        logger.info(f"Reset session {session.id}: SMS code verified")
        return {"smsVerified": True}

    # ------------------------------------------------------------------
    # Step 3: new password
    # ------------------------------------------------------------------
    def complete_password_reset(self, session_id: str, new_password: str) -> Dict[str, bool]:
        session = self.ensure_session(session_id)

        email_required = bool(session.email_token_hash)
        sms_required = bool(session.sms_code_hash)
        if not email_required and not sms_required:
            raise VerificationStepError("Password reset session has no verification configured")
        if email_required and not session.email_verified:
            raise VerificationStepError("Email verification must be completed before resetting password")
        if sms_required and not session.sms_verified:
            raise VerificationStepError("SMS verification must be completed before resetting password")

        if not validate_password_strength(new_password):
            raise WeakPasswordError()

        admin = self._get_admin(session.admin_id)
        new_hash = hash_password(new_password)

        session.status = ResetSessionStatus.COMPLETED
        session.sms_code_hash = None
        session.sms_code_expires_at = None
        # Unusable value: the original link can never match again
        session.email_token_hash = hash_secret(generate_token(16))
        if not self.session_repo.complete_if_open(session, new_hash):
            raise SessionClosedError("Password reset session has already been completed")

        self.verification_repo.expire_pending(admin.id, VerificationContext.PASSWORD_RESET)
        logger.info(f"Reset session {session.id}: password updated for admin {admin.id}")
        return {"success": True}
