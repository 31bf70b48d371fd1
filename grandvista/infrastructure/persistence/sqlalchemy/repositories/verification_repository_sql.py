from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import AdminVerification, VerificationContext, VerificationStatus, VerificationType
from .....application.ports.verification_repo import VerificationRepository, VerificationRecord


class SqlVerificationRepository(VerificationRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, row: AdminVerification) -> VerificationRecord:
        return VerificationRecord(
            id=row.id,
            admin_id=row.admin_id,
            type=VerificationType(row.type),
            context=VerificationContext(row.context),
            target_value=row.target_value,
            secret_hash=row.secret_hash,
            status=VerificationStatus(row.status),
            expires_at=row.expires_at,
            created_at=row.created_at,
        )

    def _expire_stmt(self, admin_id: str, context: VerificationContext, type: Optional[VerificationType]):
        stmt = (
            update(AdminVerification)
            .where(AdminVerification.admin_id == admin_id)
            .where(AdminVerification.context == context.value)
            .where(AdminVerification.status == VerificationStatus.PENDING.value)
        )
        if type is not None:
            stmt = stmt.where(AdminVerification.type == type.value)
        return stmt.values(status=VerificationStatus.EXPIRED.value, updated_at=datetime.utcnow())

    def supersede_pending(self, admin_id: str, type: VerificationType, context: VerificationContext,
                          target_value: str, secret_hash: str, expires_at: datetime) -> VerificationRecord:
        row = AdminVerification(
            admin_id=admin_id,
            type=type.value,
            context=context.value,
            target_value=target_value,
            secret_hash=secret_hash,
            expires_at=expires_at,
        )
        try:
            self.session.exec(self._expire_stmt(admin_id, context, type))
            self.session.add(row)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(row)
        return self._to_record(row)

    def expire_pending(self, admin_id: str, context: VerificationContext, type: Optional[VerificationType] = None) -> int:
        result = self.session.exec(self._expire_stmt(admin_id, context, type))
        self.session.commit()
        return result.rowcount or 0

    def find_by_hash(self, secret_hash: str, type: VerificationType, context: VerificationContext) -> Optional[VerificationRecord]:
        row = self.session.exec(
            select(AdminVerification)
            .where(AdminVerification.secret_hash == secret_hash)
            .where(AdminVerification.type == type.value)
            .where(AdminVerification.context == context.value)
            .order_by(AdminVerification.created_at.desc())
        ).first()
        return self._to_record(row) if row else None

    def find_pending(self, admin_id: str, type: VerificationType, context: VerificationContext) -> Optional[VerificationRecord]:
        row = self.session.exec(
            select(AdminVerification)
            .where(AdminVerification.admin_id == admin_id)
            .where(AdminVerification.type == type.value)
            .where(AdminVerification.context == context.value)
            .where(AdminVerification.status == VerificationStatus.PENDING.value)
            .order_by(AdminVerification.created_at.desc())
        ).first()
        return self._to_record(row) if row else None

    def set_status(self, record_id: str, status: VerificationStatus) -> None:
        row = self.session.get(AdminVerification, record_id)
        if not row:
            return
        row.status = status.value
        row.updated_at = datetime.utcnow()
        self.session.add(row)
        self.session.commit()
