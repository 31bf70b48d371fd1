import logging
from typing import Optional

from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient

from ...config import Settings
from ...application.ports.notifier import SmsSender

logger = logging.getLogger(__name__)


class TwilioSmsSender(SmsSender):
    def __init__(self, from_number: str, client: Client):
        self.client = client
        self.from_number = from_number

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["TwilioSmsSender"]:
        if not settings.twilio_configured:
            return None
        # Retry transient failures; the request thread waits at most timeout * retries
        http_client = TwilioHttpClient(timeout=15, max_retries=3)
        client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, http_client=http_client)
        return cls(from_number=settings.TWILIO_PHONE_NUMBER, client=client)

    def send(self, to: str, body: str) -> None:
        message = self.client.messages.create(from_=self.from_number, to=to, body=body)
        logger.info(f"SMS accepted by Twilio (sid={message.sid})")
