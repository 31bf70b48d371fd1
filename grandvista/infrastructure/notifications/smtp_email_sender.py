import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from ...config import Settings
from ...application.ports.notifier import EmailSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(EmailSender):
    def __init__(self, host: str, port: int, user: str, password: str, from_addr: str, use_ssl: bool = False, timeout: int = 20):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SmtpEmailSender"]:
        if not settings.smtp_configured:
            return None
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_addr=settings.SMTP_FROM or settings.SMTP_USER,
            use_ssl=settings.SMTP_SECURE or settings.SMTP_PORT == 465,
        )

    def _build_message(self, to: str, subject: str, html: str, text: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_addr
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text or "")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        msg = self._build_message(to, subject, html, text)
        ctx = ssl.create_default_context()
        if self.use_ssl:
            with smtplib.SMTP_SSL(self.host, self.port, context=ctx, timeout=self.timeout) as s:
                s.login(self.user, self.password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
                s.ehlo()
                s.starttls(context=ctx)
                s.ehlo()
                s.login(self.user, self.password)
                s.send_message(msg)
        logger.info(f"Email '{subject}' accepted by {self.host}:{self.port}")
