# grandvista/db/models/admin/admin.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

class Admin(SQLModel, table=True):
    __tablename__ = "admins"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    full_name: str = Field(max_length=120)
    email: str = Field(max_length=254, unique=True, index=True)
    phone_number: Optional[str] = Field(max_length=20, default=None)
    password_hash: str = Field(max_length=255)
    role: str = Field(max_length=20, default="admin")
    email_verified: bool = Field(default=False)
    phone_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
