from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from ...db.models.enums import QRFormat


@dataclass
class QRRecord:
    id: str
    url: str
    format: QRFormat
    slug: str
    image_key: str
    scan_count: int
    last_scan_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class QRRepository(Protocol):
    def create(self, url: str, format: QRFormat, slug: str, image_key: str) -> QRRecord:
        ...

    def get_by_id(self, qr_id: str) -> Optional[QRRecord]:
        ...

    def get_by_slug(self, slug: str) -> Optional[QRRecord]:
        ...

    def get_by_image_key(self, image_key: str) -> Optional[QRRecord]:
        ...

    def slug_exists(self, slug: str) -> bool:
        ...

    def list_all(self) -> List[QRRecord]:
        ...

    def save(self, record: QRRecord) -> QRRecord:
        ...

    def record_scan(self, slug: str, scanned_at: datetime) -> Optional[QRRecord]:
        """Increment scan_count, stamp last_scan_at and append a scan log row."""
        ...

    def count(self) -> int:
        ...

    def count_scans(self, since: Optional[datetime] = None) -> int:
        ...

    def last_scan_time(self) -> Optional[datetime]:
        ...

    def count_distinct_scanned_slugs(self) -> int:
        ...
