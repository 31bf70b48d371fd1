# grandvista/db/models/qr/scan_log.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class QRScanLog(SQLModel, table=True):
    __tablename__ = "qr_scan_logs"
    id: Optional[int] = Field(default=None, primary_key=True)
    qr_id: str = Field(foreign_key="qr_codes.id", index=True)
    slug: str = Field(max_length=32, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
