from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, update
from sqlmodel import Session, select

from .....db.models import QRCode, QRScanLog, QRFormat
from .....application.ports.qr_repo import QRRepository, QRRecord


class SqlQRRepository(QRRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, row: QRCode) -> QRRecord:
        return QRRecord(
            id=row.id,
            url=row.url,
            format=QRFormat(row.format),
            slug=row.slug,
            image_key=row.image_key,
            scan_count=row.scan_count,
            last_scan_at=row.last_scan_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def create(self, url: str, format: QRFormat, slug: str, image_key: str) -> QRRecord:
        row = QRCode(url=url, format=format.value, slug=slug, image_key=image_key)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._to_record(row)

    def get_by_id(self, qr_id: str) -> Optional[QRRecord]:
        row = self.session.get(QRCode, qr_id)
        return self._to_record(row) if row else None

    def get_by_slug(self, slug: str) -> Optional[QRRecord]:
        row = self.session.exec(select(QRCode).where(QRCode.slug == slug)).first()
        return self._to_record(row) if row else None

    def get_by_image_key(self, image_key: str) -> Optional[QRRecord]:
        row = self.session.exec(select(QRCode).where(QRCode.image_key == image_key)).first()
        return self._to_record(row) if row else None

    def slug_exists(self, slug: str) -> bool:
        return self.session.exec(select(QRCode.id).where(QRCode.slug == slug)).first() is not None

    def list_all(self) -> List[QRRecord]:
        rows = self.session.exec(select(QRCode).order_by(QRCode.created_at.desc())).all()
        return [self._to_record(r) for r in rows]

    def save(self, record: QRRecord) -> QRRecord:
        row = self.session.get(QRCode, record.id)
        if not row:
            raise LookupError(f"QR code {record.id} no longer exists")
        row.url = record.url
        row.format = record.format.value
        row.image_key = record.image_key
        row.updated_at = datetime.utcnow()
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._to_record(row)

    def record_scan(self, slug: str, scanned_at: datetime) -> Optional[QRRecord]:
        row = self.session.exec(select(QRCode).where(QRCode.slug == slug)).first()
        if not row:
            return None
        try:
            # Increment in SQL so concurrent scans are never lost
            self.session.exec(
                update(QRCode)
                .where(QRCode.id == row.id)
                .values(scan_count=QRCode.scan_count + 1, last_scan_at=scanned_at)
            )
            self.session.add(QRScanLog(qr_id=row.id, slug=row.slug, created_at=scanned_at))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(row)
        return self._to_record(row)

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(QRCode)).one()

    def count_scans(self, since: Optional[datetime] = None) -> int:
        query = select(func.count()).select_from(QRScanLog)
        if since is not None:
            query = query.where(QRScanLog.created_at >= since)
        return self.session.exec(query).one()

    def last_scan_time(self) -> Optional[datetime]:
        return self.session.exec(
            select(QRScanLog.created_at).order_by(QRScanLog.created_at.desc(), QRScanLog.id.desc())
        ).first()

    def count_distinct_scanned_slugs(self) -> int:
        return self.session.exec(select(func.count(func.distinct(QRScanLog.slug)))).one()
