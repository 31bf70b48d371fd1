# grandvista/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Admin email address")
    password: str = Field(..., min_length=1, description="Admin password")

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()


class AdminSummary(BaseModel):
    id: str
    fullName: str
    email: str
    phoneNumber: Optional[str] = None
    role: str
    emailVerified: bool
    phoneVerified: bool


class LoginResponse(BaseModel):
    token: str
    admin: AdminSummary
