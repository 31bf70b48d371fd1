from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session

from .....db.models import Admin, PasswordResetSession, ResetSessionStatus
from .....application.ports.reset_session_repo import ResetSessionRepository, ResetSessionDto

_CLOSED_STATUSES = (ResetSessionStatus.COMPLETED.value, ResetSessionStatus.EXPIRED.value)


class SqlResetSessionRepository(ResetSessionRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, row: PasswordResetSession) -> ResetSessionDto:
        return ResetSessionDto(
            id=row.id,
            admin_id=row.admin_id,
            email_token_hash=row.email_token_hash,
            email_token_expires_at=row.email_token_expires_at,
            email_verified=bool(row.email_verified),
            sms_code_hash=row.sms_code_hash,
            sms_code_expires_at=row.sms_code_expires_at,
            sms_verified=bool(row.sms_verified),
            status=ResetSessionStatus(row.status),
            expires_at=row.expires_at,
            created_at=row.created_at,
        )

    def _values(self, dto: ResetSessionDto) -> dict:
        return {
            "email_token_hash": dto.email_token_hash,
            "email_token_expires_at": dto.email_token_expires_at,
            "email_verified": dto.email_verified,
            "sms_code_hash": dto.sms_code_hash,
            "sms_code_expires_at": dto.sms_code_expires_at,
            "sms_verified": dto.sms_verified,
            "status": dto.status.value,
            "updated_at": datetime.utcnow(),
        }

    def create(self, admin_id: str, expires_at: datetime,
               email_token_hash: Optional[str] = None, email_token_expires_at: Optional[datetime] = None,
               sms_code_hash: Optional[str] = None, sms_code_expires_at: Optional[datetime] = None) -> ResetSessionDto:
        row = PasswordResetSession(
            admin_id=admin_id,
            email_token_hash=email_token_hash,
            email_token_expires_at=email_token_expires_at,
            sms_code_hash=sms_code_hash,
            sms_code_expires_at=sms_code_expires_at,
            expires_at=expires_at,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._to_dto(row)

    def get(self, session_id: str) -> Optional[ResetSessionDto]:
        row = self.session.get(PasswordResetSession, session_id)
        if row:
            # Always read the committed state; another request may have advanced the session
            self.session.refresh(row)
        return self._to_dto(row) if row else None

    def save(self, dto: ResetSessionDto) -> None:
        self.session.exec(
            update(PasswordResetSession)
            .where(PasswordResetSession.id == dto.id)
            .values(**self._values(dto))
        )
        self.session.commit()

    def complete_if_open(self, dto: ResetSessionDto, password_hash: str) -> bool:
        try:
            result = self.session.exec(
                update(PasswordResetSession)
                .where(PasswordResetSession.id == dto.id)
                .where(PasswordResetSession.status.not_in(_CLOSED_STATUSES))
                .values(**self._values(dto))
            )
            if (result.rowcount or 0) != 1:
                self.session.rollback()
                return False
            updated = self.session.exec(
                update(Admin)
                .where(Admin.id == dto.admin_id)
                .values(password_hash=password_hash, updated_at=datetime.utcnow())
            )
            if (updated.rowcount or 0) != 1:
                raise LookupError(f"Admin {dto.admin_id} no longer exists")
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return True
