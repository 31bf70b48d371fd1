import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...exceptions import FileAccessDeniedError, NotFoundError, SlugExhaustionError
from ...utils import create_file_token, decode_file_token
from ...db.models.enums import QRFormat
from ..ports.qr_renderer import QRRenderer
from ..ports.qr_repo import QRRecord, QRRepository
from ..ports.storage_repo import StorageRepository

logger = logging.getLogger(__name__)

SLUG_MAX_ATTEMPTS = 5
SLUG_BYTES = 6

CONTENT_TYPES = {
    QRFormat.PNG: "image/png",
    QRFormat.SVG: "image/svg+xml",
    QRFormat.PDF: "application/pdf",
}


def generate_slug() -> str:
    return secrets.token_urlsafe(SLUG_BYTES)


def verify_file_token(token: str) -> Optional[Dict[str, str]]:
    """{"key": ...} for a valid, unexpired file token; None otherwise."""
    if not token:
        return None
    return decode_file_token(token)


@dataclass
class QRService:
    """QR asset lifecycle.

    Rendered files are a cache of render(url, format); the database row is the
    source of truth and a missing file is rebuilt before it is served.
    """

    qr_repo: QRRepository
    storage: StorageRepository
    renderer: QRRenderer
    file_route: str = "/api/admin/qr/file"
    signed_url_ttl_seconds: int = 600
    clock: Callable[[], datetime] = field(default=datetime.utcnow)

    def _new_image_key(self, format: QRFormat) -> str:
        millis = int(self.clock().timestamp() * 1000)
        return f"{generate_slug()}-{millis}.{format.value}"

    def _unique_slug(self) -> str:
        for attempt in range(SLUG_MAX_ATTEMPTS):
            slug = generate_slug()
            if not self.qr_repo.slug_exists(slug):
                return slug
            logger.warning(f"QR slug collision on attempt {attempt + 1}")
        raise SlugExhaustionError()

    def _write_file(self, url: str, format: QRFormat, image_key: str) -> bytes:
        data = self.renderer.render(url, format)
        self.storage.save_bytes(image_key, data)
        return data

    def sign_file_key(self, image_key: str) -> str:
        return create_file_token(image_key, ttl_seconds=self.signed_url_ttl_seconds)

    def signed_url(self, image_key: str) -> str:
        return f"{self.file_route}/{image_key}?token={self.sign_file_key(image_key)}"

    def serialize(self, record: QRRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "url": record.url,
            "format": record.format.value,
            "slug": record.slug,
            "scanCount": record.scan_count,
            "lastScanAt": record.last_scan_at,
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
            "signedUrl": self.signed_url(record.image_key),
        }

    def create_qr_code(self, url: str, format: Optional[QRFormat] = None) -> Dict[str, Any]:
        url = (url or "").strip()
        if not url:
            raise ValueError("Target URL is required")
        format = format or QRFormat.PNG

        slug = self._unique_slug()
        image_key = self._new_image_key(format)
        self._write_file(url, format, image_key)

        record = self.qr_repo.create(url=url, format=format, slug=slug, image_key=image_key)
        logger.info(f"QR code {record.id} created (slug={slug}, format={format.value})")
        return self.serialize(record)

    def get_qr_code(self, qr_id: str) -> Dict[str, Any]:
        record = self.qr_repo.get_by_id(qr_id)
        if not record:
            raise NotFoundError("QR code not found")
        return self.serialize(record)

    def list_qr_codes(self) -> List[Dict[str, Any]]:
        return [self.serialize(r) for r in self.qr_repo.list_all()]

    def update_qr_code(self, qr_id: str, url: Optional[str] = None, format: Optional[QRFormat] = None) -> Dict[str, Any]:
        record = self.qr_repo.get_by_id(qr_id)
        if not record:
            raise NotFoundError("QR code not found")

        new_url = url.strip() if url and url.strip() else record.url
        new_format = format or record.format
        if new_url == record.url and new_format == record.format:
            return self.serialize(record)

        old_key = record.image_key
        try:
            self.storage.delete(old_key)
        except OSError as e:
            logger.warning(f"Could not delete previous QR file {old_key}: {e}")

        record.url = new_url
        record.format = new_format
        record.image_key = self._new_image_key(new_format)
        if record.image_key == old_key:
            record.image_key = self._new_image_key(new_format)
        self._write_file(record.url, record.format, record.image_key)

        record = self.qr_repo.save(record)
        logger.info(f"QR code {record.id} regenerated ({old_key} -> {record.image_key})")
        return self.serialize(record)

    def get_qr_code_stats(self) -> Dict[str, Any]:
        now = self.clock()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        # Seven calendar days including today
        start_of_week = start_of_day - timedelta(days=6)
        return {
            "totalCodes": self.qr_repo.count(),
            "totalScans": self.qr_repo.count_scans(),
            "scansToday": self.qr_repo.count_scans(since=start_of_day),
            "scansThisWeek": self.qr_repo.count_scans(since=start_of_week),
            "uniqueVisitors": self.qr_repo.count_distinct_scanned_slugs(),
            "lastScanTime": self.qr_repo.last_scan_time(),
        }

    def increment_scan_count(self, slug: str) -> Optional[QRRecord]:
        record = self.qr_repo.record_scan(slug, self.clock())
        if record is None:
            logger.info(f"Scan for unknown QR slug {slug!r} ignored")
        return record

    def resolve_redirect(self, slug: str) -> str:
        record = self.qr_repo.get_by_slug(slug)
        if not record:
            raise NotFoundError("QR code not found")
        self.increment_scan_count(slug)
        return record.url

    def verify_file_token(self, token: str) -> Optional[Dict[str, str]]:
        return verify_file_token(token)

    def get_file(self, image_key: str, token: Optional[str]) -> Tuple[bytes, str]:
        """Bytes and content type for a signed file request."""
        payload = verify_file_token(token or "")
        if not payload or payload["key"] != image_key:
            raise FileAccessDeniedError()

        record = self.qr_repo.get_by_image_key(image_key)
        data = self.storage.read_bytes(image_key)
        if data is None:
            if not record:
                raise NotFoundError("QR file not found")
            logger.warning(f"QR file {image_key} missing from storage, regenerating")
            data = self._write_file(record.url, record.format, image_key)

        format = record.format if record else QRFormat(image_key.rsplit(".", 1)[-1])
        return data, CONTENT_TYPES[format]
