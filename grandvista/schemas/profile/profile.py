# grandvista/schemas/profile/profile.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
import re

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PHONE_PATTERN = re.compile(r'^[+]?\d{8,15}$')


class AdminProfile(BaseModel):
    id: str
    fullName: str
    email: str
    phoneNumber: Optional[str] = None
    role: str
    emailVerified: bool
    phoneVerified: bool
    createdAt: datetime
    updatedAt: datetime


class UpdateProfileRequest(BaseModel):
    fullName: str
    email: str
    phoneNumber: str

    @validator('fullName')
    def validate_full_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError('Full name must be at least 2 characters')
        if len(v) > 120:
            raise ValueError('Full name must be at most 120 characters')
        return v

    @validator('email')
    def validate_email(cls, v):
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email address')
        return v

    @validator('phoneNumber')
    def validate_phone(cls, v):
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError('Phone number must contain 8-15 digits')
        return v


class UpdateProfileResponse(BaseModel):
    message: str = "Profile updated successfully"
    profile: AdminProfile


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=8)
