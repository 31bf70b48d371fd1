from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ...db.models.enums import VerificationContext, VerificationStatus, VerificationType


@dataclass
class VerificationRecord:
    id: str
    admin_id: str
    type: VerificationType
    context: VerificationContext
    target_value: str
    secret_hash: str
    status: VerificationStatus
    expires_at: datetime
    created_at: datetime


class VerificationRepository(Protocol):
    def supersede_pending(self, admin_id: str, type: VerificationType, context: VerificationContext,
                          target_value: str, secret_hash: str, expires_at: datetime) -> VerificationRecord:
        """Expire pending (admin, type, context) records and insert the new one in one transaction."""
        ...

    def expire_pending(self, admin_id: str, context: VerificationContext, type: Optional[VerificationType] = None) -> int:
        ...

    def find_by_hash(self, secret_hash: str, type: VerificationType, context: VerificationContext) -> Optional[VerificationRecord]:
        ...

    def find_pending(self, admin_id: str, type: VerificationType, context: VerificationContext) -> Optional[VerificationRecord]:
        ...

    def set_status(self, record_id: str, status: VerificationStatus) -> None:
        ...
