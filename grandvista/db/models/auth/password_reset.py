# grandvista/db/models/auth/password_reset.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ..enums import ResetSessionStatus

class PasswordResetSession(SQLModel, table=True):
    __tablename__ = "password_reset_sessions"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    admin_id: str = Field(foreign_key="admins.id", index=True)
    email_token_hash: Optional[str] = Field(max_length=64, default=None)
    email_token_expires_at: Optional[datetime] = Field(default=None)
    email_verified: bool = Field(default=False)
    sms_code_hash: Optional[str] = Field(max_length=64, default=None)
    sms_code_expires_at: Optional[datetime] = Field(default=None)
    sms_verified: bool = Field(default=False)
    status: str = Field(max_length=20, default=ResetSessionStatus.PENDING.value)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
