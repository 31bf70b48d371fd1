import logging
from typing import Optional

from ...config import Settings
from ...exceptions import ConfigurationError
from ...application.ports.notifier import EmailSender, Notifier, SmsSender
from .smtp_email_sender import SmtpEmailSender
from .twilio_sms_sender import TwilioSmsSender

logger = logging.getLogger(__name__)


class NotificationGateway(Notifier):
    """Single entry point for outbound email and SMS.

    Either transport may be absent. Sending through a missing transport raises
    ConfigurationError; callers that can degrade (the reset flow without SMS)
    check is_sms_configured() first.
    """

    def __init__(self, email_sender: Optional[EmailSender] = None, sms_sender: Optional[SmsSender] = None):
        self.email_sender = email_sender
        self.sms_sender = sms_sender

    def is_email_configured(self) -> bool:
        return self.email_sender is not None

    def is_sms_configured(self) -> bool:
        return self.sms_sender is not None

    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        if self.email_sender is None:
            raise ConfigurationError(
                "SMTP credentials are not configured. Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD"
            )
        self.email_sender.send(to, subject, html, text)

    def send_sms(self, to: str, body: str) -> None:
        if self.sms_sender is None:
            raise ConfigurationError(
                "Twilio credentials are not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER"
            )
        self.sms_sender.send(to, body)


def build_notification_gateway(settings: Settings) -> NotificationGateway:
    gateway = NotificationGateway(
        email_sender=SmtpEmailSender.from_settings(settings),
        sms_sender=TwilioSmsSender.from_settings(settings),
    )
    logger.info(
        f"Notification gateway ready (email={gateway.is_email_configured()}, sms={gateway.is_sms_configured()})"
    )
    return gateway
