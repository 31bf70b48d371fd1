# grandvista/schemas/qr/qr.py
from pydantic import BaseModel, root_validator, validator
from typing import Optional
from datetime import datetime

from ...db.models.enums import QRFormat


class CreateQRRequest(BaseModel):
    url: str
    format: QRFormat = QRFormat.PNG

    @validator('url')
    def validate_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Target URL is required')
        return v


class UpdateQRRequest(BaseModel):
    url: Optional[str] = None
    format: Optional[QRFormat] = None

    @validator('url')
    def validate_url(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Invalid URL')
        return v.strip() if v else v

    @root_validator(skip_on_failure=True)
    def require_change(cls, values):
        if not values.get('url') and not values.get('format'):
            raise ValueError('Provide url or format to update')
        return values


class QRCodeResponse(BaseModel):
    id: str
    url: str
    format: QRFormat
    slug: str
    scanCount: int
    lastScanAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime
    signedUrl: str


class QRStatsResponse(BaseModel):
    totalCodes: int
    totalScans: int
    scansToday: int
    scansThisWeek: int
    uniqueVisitors: int
    lastScanTime: Optional[datetime] = None
