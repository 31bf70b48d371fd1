import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

from ...exceptions import ConflictError, ExpiredError, InvalidCodeError, NotFoundError
from ...security import generate_numeric_code, generate_token, hash_secret, secrets_match
from ...db.models.enums import VerificationContext, VerificationStatus, VerificationType
from ..ports.admin_repo import AdminDto, AdminRepository
from ..ports.notifier import Notifier
from ..ports.verification_repo import VerificationRecord, VerificationRepository

logger = logging.getLogger(__name__)

VERIFICATION_EXPIRY_MINUTES = 15
EMAIL_TOKEN_BYTES = 24
PHONE_CODE_DIGITS = 6


@dataclass
class VerificationService:
    """Email-link and SMS-code verification of admin contact details.

    At most one pending record exists per (admin, type, context): every new
    request supersedes the previous one.
    """

    admin_repo: AdminRepository
    verification_repo: VerificationRepository
    notifier: Notifier
    app_url: str = "http://localhost:5173"
    clock: Callable[[], datetime] = field(default=datetime.utcnow)

    def _expiry(self) -> datetime:
        return self.clock() + timedelta(minutes=VERIFICATION_EXPIRY_MINUTES)

    def _get_admin(self, admin_id: str) -> AdminDto:
        admin = self.admin_repo.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin account no longer exists")
        return admin

    def _verification_url(self, token: str, context: VerificationContext, path: str = "/admin/verify-email") -> str:
        query = urlencode({"token": token, "context": context.value})
        return f"{self.app_url.rstrip('/')}{path}?{query}"

    def _mark_expired(self, record: VerificationRecord) -> None:
        self.verification_repo.set_status(record.id, VerificationStatus.EXPIRED)

    def request_email_verification(self, admin_id: str, target_email: str,
                                   context: VerificationContext = VerificationContext.PROFILE,
                                   subject: Optional[str] = None) -> VerificationRecord:
        token = generate_token(EMAIL_TOKEN_BYTES)
        record = self.verification_repo.supersede_pending(
            admin_id=admin_id,
            type=VerificationType.EMAIL,
            context=context,
            target_value=target_email,
            secret_hash=hash_secret(token),
            expires_at=self._expiry(),
        )

        verification_url = self._verification_url(token, context)
        self.notifier.send_email(
            to=target_email,
            subject=subject or "Verify your email address",
            html=(
                "<p>Hi there,</p>"
                "<p>Please confirm your email address by clicking the link below:</p>"
                f'<p><a href="{verification_url}">Verify Email Address</a></p>'
                f"<p>This link will expire in {VERIFICATION_EXPIRY_MINUTES} minutes.</p>"
            ),
            text=f"Confirm your email address: {verification_url}",
        )
        logger.info(f"Email verification requested for admin {admin_id} ({context.value})")
        return record

    def confirm_email_verification(self, token: str,
                                   context: VerificationContext = VerificationContext.PROFILE) -> AdminDto:
        record = self.verification_repo.find_by_hash(hash_secret(token.strip()), VerificationType.EMAIL, context)
        if not record:
            raise NotFoundError("Invalid or expired email verification token")

        admin = self._get_admin(record.admin_id)
        if record.status == VerificationStatus.VERIFIED:
            return admin
        if record.status == VerificationStatus.EXPIRED:
            raise ExpiredError("Email verification token has expired")
        if record.expires_at < self.clock():
            self._mark_expired(record)
            raise ExpiredError("Email verification token has expired")

        if admin.email != record.target_value:
            if self.admin_repo.email_in_use(record.target_value, exclude_admin_id=admin.id):
                raise ConflictError("Email address is already in use")
            admin.email = record.target_value
        admin.email_verified = True
        admin = self.admin_repo.save(admin)

        self.verification_repo.set_status(record.id, VerificationStatus.VERIFIED)
        logger.info(f"Email verified for admin {admin.id} ({context.value})")
        return admin

    def request_phone_verification(self, admin_id: str, target_phone: str,
                                   context: VerificationContext = VerificationContext.PROFILE,
                                   message_prefix: str = "Your verification code") -> VerificationRecord:
        code = generate_numeric_code(PHONE_CODE_DIGITS)
        record = self.verification_repo.supersede_pending(
            admin_id=admin_id,
            type=VerificationType.PHONE,
            context=context,
            target_value=target_phone,
            secret_hash=hash_secret(code),
            expires_at=self._expiry(),
        )
        self.notifier.send_sms(
            target_phone,
            f"{message_prefix} is {code}. It expires in {VERIFICATION_EXPIRY_MINUTES} minutes.",
        )
        logger.info(f"Phone verification requested for admin {admin_id} ({context.value})")
        return record

    def confirm_phone_verification(self, admin_id: str, code: str,
                                   context: VerificationContext = VerificationContext.PROFILE) -> AdminDto:
        record = self.verification_repo.find_pending(admin_id, VerificationType.PHONE, context)
        if not record:
            raise NotFoundError("No pending phone verification found")
        if record.expires_at < self.clock():
            self._mark_expired(record)
            raise ExpiredError("Phone verification code has expired")
        if not secrets_match(code.strip(), record.secret_hash):
            raise InvalidCodeError("Invalid phone verification code")

        admin = self._get_admin(record.admin_id)
        admin.phone_number = record.target_value
        admin.phone_verified = True
        admin = self.admin_repo.save(admin)

        self.verification_repo.set_status(record.id, VerificationStatus.VERIFIED)
        logger.info(f"Phone verified for admin {admin.id} ({context.value})")
        return admin

    def expire_pending(self, admin_id: str, context: VerificationContext,
                       type: Optional[VerificationType] = None) -> int:
        return self.verification_repo.expire_pending(admin_id, context, type)
