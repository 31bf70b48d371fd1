# grandvista/db/models/qr/qr_code.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ..enums import QRFormat

class QRCode(SQLModel, table=True):
    __tablename__ = "qr_codes"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    url: str = Field(max_length=2048)
    format: str = Field(max_length=5, default=QRFormat.PNG.value)
    slug: str = Field(max_length=32, unique=True, index=True)
    image_key: str = Field(max_length=128, unique=True, index=True)
    scan_count: int = Field(default=0)
    last_scan_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
