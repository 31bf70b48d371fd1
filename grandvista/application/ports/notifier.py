from typing import Optional, Protocol


class EmailSender(Protocol):
    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        ...


class SmsSender(Protocol):
    def send(self, to: str, body: str) -> None:
        ...


class Notifier(Protocol):
    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        ...

    def send_sms(self, to: str, body: str) -> None:
        ...

    def is_sms_configured(self) -> bool:
        ...
