# grandvista/db/models/auth/verification.py
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ..enums import VerificationStatus

class AdminVerification(SQLModel, table=True):
    __tablename__ = "admin_verifications"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    admin_id: str = Field(foreign_key="admins.id", index=True)
    type: str = Field(max_length=10)
    context: str = Field(max_length=20)
    target_value: str = Field(max_length=254)
    secret_hash: str = Field(max_length=64, index=True)
    status: str = Field(max_length=10, default=VerificationStatus.PENDING.value, index=True)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
