from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ...db.models.enums import ResetSessionStatus


@dataclass
class ResetSessionDto:
    id: str
    admin_id: str
    email_token_hash: Optional[str]
    email_token_expires_at: Optional[datetime]
    email_verified: bool
    sms_code_hash: Optional[str]
    sms_code_expires_at: Optional[datetime]
    sms_verified: bool
    status: ResetSessionStatus
    expires_at: datetime
    created_at: datetime


class ResetSessionRepository(Protocol):
    def create(self, admin_id: str, expires_at: datetime,
               email_token_hash: Optional[str] = None, email_token_expires_at: Optional[datetime] = None,
               sms_code_hash: Optional[str] = None, sms_code_expires_at: Optional[datetime] = None) -> ResetSessionDto:
        ...

    def get(self, session_id: str) -> Optional[ResetSessionDto]:
        ...

    def save(self, session: ResetSessionDto) -> None:
        ...

    def complete_if_open(self, session: ResetSessionDto, password_hash: str) -> bool:
        """Persist the closed session and the admin's new password hash in one transaction.

        Only applies while the stored row is not completed/expired; returns False
        (writing nothing) if another writer closed it first.
        """
        ...
